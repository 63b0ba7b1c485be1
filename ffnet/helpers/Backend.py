# ffnet/helpers/Backend.py
import numpy as np

from .errors import ShapeMismatchError

VERBOSE = False  # set True to print layer construction lines


class Backend:
    """NumPy buffer helpers shared by layers, losses and kernels."""
    def __init__(self, default_float=np.float64):
        self.default_float = default_float
        self.xp = np

    def ensure_array(self, x, dtype=None, copy=False):
        """
        Ensure 'x' is a NumPy array.
        Accepts list/tuple/np arrays; returns np.ndarray.
        """
        if isinstance(x, np.ndarray):
            if dtype is not None and x.dtype != dtype:
                return x.astype(dtype, copy=copy)
            return x.copy() if copy else x
        arr = np.asarray(x)
        if dtype is not None and arr.dtype != dtype:
            arr = arr.astype(dtype, copy=False)
        return arr

    def astype_default(self, x):
        """Cast to default float dtype if needed."""
        if hasattr(x, "dtype") and x.dtype == self.default_float:
            return x
        return self.ensure_array(x, dtype=self.default_float)

    def vector(self, x, length, what="buffer", copy=False):
        """
        Return 'x' as a flat default-float vector of exactly 'length' entries.
        Raises ShapeMismatchError otherwise.
        """
        arr = self.ensure_array(x, dtype=self.default_float, copy=copy)
        if arr.ndim != 1:
            if arr.size != length:
                raise ShapeMismatchError(
                    f"{what}: expected {length} values, got shape {arr.shape}"
                )
            arr = arr.reshape(-1)
        if arr.shape[0] != length:
            raise ShapeMismatchError(
                f"{what}: expected {length} values, got {arr.shape[0]}"
            )
        return arr

    # -------- array creation --------
    def zeros(self, *args, **kwargs):
        kwargs.setdefault("dtype", self.default_float)
        return np.zeros(*args, **kwargs)

    def empty(self, *args, **kwargs):
        kwargs.setdefault("dtype", self.default_float)
        return np.empty(*args, **kwargs)

    @property
    def eps(self):
        """Machine epsilon of the default float type."""
        return float(np.finfo(self.default_float).eps)

    # -------- delegate unknown attrs to xp --------
    def __getattr__(self, name):
        return getattr(self.xp, name)


# Global backend instance
backend = Backend()
