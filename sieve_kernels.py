"""
JIT-compiled sieve kernels for the prime table and the prime search windows.

The marking loops are the only part of sieving that runs per element, so they
are compiled with Numba and operate on NumPy uint8 arrays in place. Everything
that touches arbitrary-precision integers (window offsets, candidate values)
stays in Python; the kernels only ever see int64 indices.

KERNELS:
1. _mark_odd_composites: Eratosthenes over odd indices of a full table
2. _strike_window: strikes multiples of small primes from a search window
"""

import numpy as np
from numba import njit


# ============================================================================
# PART 1: PRIME TABLE
# ============================================================================

@njit
def _mark_odd_composites(limit: int) -> np.ndarray:
    """
    Sieve of Eratosthenes over the odd numbers below limit.

    Only odd indices >= 3 are meaningful in the returned table; even indices
    are left untouched and callers special-case 2.

    Args:
        limit: Exclusive upper bound of the table

    Returns:
        uint8 array of length limit, 1 at odd primes
    """
    sieve = np.ones(max(limit, 0), dtype=np.uint8)
    i = 3
    while i * i < limit:
        if sieve[i]:
            # Even multiples are never read, so walk by 2*i
            for j in range(i * i, limit, 2 * i):
                sieve[j] = 0
        i += 2
    return sieve


def odd_primes_below(limit: int) -> np.ndarray:
    """Odd primes below limit, ascending, as an int64 array."""
    if limit <= 3:
        return np.empty(0, dtype=np.int64)
    sieve = _mark_odd_composites(limit)
    return (np.flatnonzero(sieve[3::2]) * 2 + 3).astype(np.int64)


# ============================================================================
# PART 2: SEARCH WINDOWS
# ============================================================================

@njit
def _strike_window(window: np.ndarray, primes: np.ndarray, starts: np.ndarray) -> np.ndarray:
    """
    Strike every multiple of each small prime from a window, in place.

    Args:
        window: uint8 array, 1 for offsets still alive
        primes: int64 array of small primes
        starts: int64 array, first offset divisible by the matching prime

    Returns:
        The same window array
    """
    length = window.shape[0]
    for idx in range(primes.shape[0]):
        p = primes[idx]
        for j in range(starts[idx], length, p):
            window[j] = 0
    return window


def window_offsets(low: int, primes: tuple[int, ...]) -> np.ndarray:
    """
    First offset in a window starting after ``low`` whose candidate is a
    multiple of each prime.

    Offset i stands for candidate low + i + 1. A candidate equal to the prime
    itself is skipped so that small primes survive their own sieve.
    """
    starts = np.empty(len(primes), dtype=np.int64)
    for idx, p in enumerate(primes):
        start = p - 1 - low % p
        if low + start + 1 == p:
            start += p
        starts[idx] = start
    return starts


def sieve_window(low: int, length: int, primes: tuple[int, ...]) -> list[int]:
    """
    Offsets of a window of the given length that survive small-prime sieving.

    Args:
        low: Window base; offset i is the candidate low + i + 1
        length: Number of candidates in the window
        primes: Small primes to strike

    Returns:
        Surviving offsets in ascending order
    """
    window = np.ones(length, dtype=np.uint8)
    if primes:
        _strike_window(
            window,
            np.asarray(primes, dtype=np.int64),
            window_offsets(low, primes),
        )
    return np.flatnonzero(window).tolist()


__all__: list[str] = [
    '_mark_odd_composites',
    '_strike_window',
    'odd_primes_below',
    'sieve_window',
    'window_offsets',
]
