'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''
from functools import wraps

from twigpad.core.log import Log

def check_provisional(method):
    """
    Decorator to swallow a structural key while the focused note still has
    a provisional id. The key counts as handled.
    """
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        if self.focused_is_provisional():
            Log.debug(f"{method.__name__}: focused note {self.focused_id} is not saved yet", 10)
            return True
        return method(self, *args, **kwargs)
    return wrapper
