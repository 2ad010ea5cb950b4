import logging
import time
from functools import wraps


def timeit(func):
    """装饰器，用于测量函数执行时间

    Args:
        func: 被装饰的函数

    Returns:
        wrapper: 包装后的函数
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start_time
            logging.debug("%s took %.4fs", func.__name__, elapsed)

    return wrapper
