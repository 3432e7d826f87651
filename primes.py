"""
Prime tables, Miller-Rabin primality testing and random prime search.

All randomness comes from a caller-owned ``random.Random`` instance that is
passed explicitly, so a fixed seed reproduces every witness and every search
window.
"""
import logging
import random
from functools import lru_cache

from sieve_kernels import odd_primes_below, sieve_window

logger = logging.getLogger(__name__)

# Witness rounds; false positive probability is at most 4^-rounds
MILLER_RABIN_ROUNDS = 20


@lru_cache(maxsize=32)
def sieve_primes(limit: int) -> tuple[int, ...]:
    """
    Return all primes strictly below limit, ascending (memoized).

    >>> sieve_primes(30)
    (2, 3, 5, 7, 11, 13, 17, 19, 23, 29)
    """
    if limit < 3:
        return ()
    return (2,) + tuple(odd_primes_below(limit).tolist())


def is_prime(n: int, rng: random.Random, rounds: int = MILLER_RABIN_ROUNDS) -> bool:
    """
    Miller-Rabin strong pseudoprime test.

    Exact for n <= 3 and for even n; otherwise wrong with probability at most
    4^-rounds.

    Args:
        n: Integer to test
        rng: Random source for witnesses
        rounds: Number of independent witnesses

    Returns:
        True if n is (probably) prime
    """
    if n <= 3:
        return n >= 2
    if (n & 1) == 0:
        return False

    # write n-1 as d * 2^s
    d: int = n - 1
    s: int = 0
    while (d & 1) == 0:
        d >>= 1
        s += 1

    for _ in range(rounds):
        a = rng.randrange(2, n - 1)
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(s - 1):
            x = x * x % n
            if x == n - 1:
                break
            if x == 1:
                # previous x was a square root of 1 other than +-1
                return False
        else:
            return False
    return True


def find_prime(bounds: range, rng: random.Random, max_windows: int | None = None) -> int | None:
    """
    Find a random prime in the half-open range [bounds.start, bounds.stop).

    Samples a window start, strikes multiples of the primes below the window
    length and confirms the survivors with Miller-Rabin, smallest first.
    Windows without a prime are resampled.

    Args:
        bounds: Range to search; should be wide enough to contain primes
        rng: Random source for window starts and witnesses
        max_windows: Optional cap on sampled windows (None searches forever)

    Returns:
        A prime in range, or None if max_windows ran out
    """
    lo, hi = bounds.start, bounds.stop
    if hi <= lo:
        raise ValueError(f"empty search range [{lo}, {hi})")

    window_len = max(2 * lo.bit_length(), 2)
    small_primes = sieve_primes(window_len)

    windows = 0
    while max_windows is None or windows < max_windows:
        windows += 1
        low = rng.randrange(lo, hi)
        for offset in sieve_window(low, window_len, small_primes):
            candidate = low + offset + 1
            if candidate >= hi:
                break
            if is_prime(candidate, rng):
                return candidate
        logger.debug("no prime in window starting at %d", low)

    logger.debug("gave up after %d windows in [%d, %d)", windows, lo, hi)
    return None


def random_semiprime(bits: int, rng: random.Random) -> tuple[int, int, int]:
    """
    Build n = p * q from two distinct random primes of the given bit length.

    Returns:
        (p, q, n)
    """
    if bits < 3:
        raise ValueError(f"need at least 3 bits for two distinct primes, got {bits}")
    bounds = range(1 << (bits - 1), 1 << bits)
    p = find_prime(bounds, rng)
    q = p
    while q == p:
        q = find_prime(bounds, rng)
    return p, q, p * q
