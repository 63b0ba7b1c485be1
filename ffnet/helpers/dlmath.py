"""
Numeric kernels used by layers and losses.
Every kernel works on 1-D buffers and an explicit length; the ones that
write take the destination first and never allocate it.
"""
import math

import numpy as np

from .errors import AliasingError
from .Backend import backend

EPSILON = backend.eps


# ------------------ random source ------------------
def make_rng(seed=None):
    """
    Seeded random source shared by every layer of a model.
    Passing a Generator returns it unchanged.
    """
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.Generator(np.random.MT19937(seed))


def normal_pdf(mean, std_dev):
    """
    Return a sampler f(rng) -> float distributed approximately N(mean, std_dev).

    Uses a Box-Muller transform over rng.random() instead of the generator's
    own normal distribution, so equal seeds give equal draws everywhere.
    """
    mean = float(mean)
    std_dev = float(std_dev)

    def sample(rng):
        # 1 - U keeps u1 in (0, 1] so log never sees 0
        u1 = 1.0 - rng.random()
        u2 = rng.random()
        z = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return mean + std_dev * z

    return sample


# ------------------ array primitives ------------------
def arr_sum(dst, src1, src2, length):
    # dst may be src1 or src2
    np.add(src1[:length], src2[:length], out=dst[:length])


def arr_mul(dst, src1, src2, length):
    np.multiply(src1[:length], src2[:length], out=dst[:length])


def matarr_mul(dst, mat, vec, rows, cols):
    """
    dst = mat . vec for a rows x cols row-major matrix (flat or 2-D).
    dst and vec must not overlap.
    """
    if np.shares_memory(dst, vec):
        raise AliasingError(
            "dst and vec have to be different in order to perform matarr_mul"
        )
    m = np.reshape(mat, -1)[: rows * cols].reshape(rows, cols)
    dst[:rows] = m @ vec[:cols]


# ------------------ activations ------------------
def relu(x):
    return np.maximum(x, 0)


def relu_vec(dst, src, length):
    np.maximum(src[:length], 0, out=dst[:length])


def relu_1(dst, src, length):
    # derivative at 0 is taken as 0
    dst[:length] = np.where(src[:length] > 0, 1, 0)


def softmax(dst, src, length):
    # no max subtraction: large inputs overflow to inf/nan
    np.exp(src[:length], out=dst[:length])
    inv_sum_exp_z = 1.0 / np.sum(dst[:length])
    dst[:length] *= inv_sum_exp_z


def softmax_1_opt(dst, src, length):
    """
    Softmax derivative where src already holds softmax outputs.
    dst_i = sum_j (s_i (1 - s_i) if i == j else -s_i s_j)
    """
    if np.shares_memory(dst, src):
        raise AliasingError(
            "src and dst have to be different in order to perform softmax_1_opt"
        )
    s = src[:length]
    jacobian = -np.outer(s, s)
    np.fill_diagonal(jacobian, s * (1 - s))
    dst[:length] = np.sum(jacobian, axis=1)


def softmax_1(dst, src, length):
    tmp = backend.empty(length)
    softmax(tmp, src, length)
    softmax_1_opt(dst, tmp, length)


# ------------------ losses ------------------
def cross_entropy(y, y_hat):
    return float(-y * np.log(np.maximum(y_hat, EPSILON)))


def cross_entropy_vec(y, y_hat, length):
    y_hat = np.maximum(y_hat[:length], EPSILON)
    return float(-np.sum(y[:length] * np.log(y_hat)))


def cross_entropy_1(y, y_hat, norm):
    return float(-norm * y / np.maximum(y_hat, EPSILON))


def cross_entropy_1_vec(dst, y, y_hat, norm, length):
    dst[:length] = -norm * y[:length] / np.maximum(y_hat[:length], EPSILON)


def squared_error(y, y_hat):
    return float((y_hat - y) ** 2)


def squared_error_1(y, y_hat, norm):
    return float(2.0 * norm * (y_hat - y))


def mean_squared_error(y, y_hat, length):
    diff = y_hat[:length] - y[:length]
    return float(np.sum(diff * diff) / length)


def mean_squared_error_1(dst, y, y_hat, norm, length):
    dst[:length] = 2.0 * norm * (y_hat[:length] - y[:length])


# ------------------ reductions ------------------
def max_and_argmax(src, length):
    """Largest value and its index; ties go to the lowest index."""
    if length <= 0:
        raise ValueError("max_and_argmax needs at least one element")
    idx = int(np.argmax(src[:length]))
    return src[idx], idx


def max(src, length):
    return max_and_argmax(src, length)[0]


def argmax(src, length):
    return max_and_argmax(src, length)[1]
