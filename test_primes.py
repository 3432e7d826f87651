import random
import unittest

from primes import (
    MILLER_RABIN_ROUNDS, find_prime, is_prime, random_semiprime, sieve_primes,
)


def _is_prime_trial(n):
    if n < 2:
        return False
    d = 2
    while d * d <= n:
        if n % d == 0:
            return False
        d += 1
    return True


class TestSievePrimes(unittest.TestCase):
    """Test the sieve of Eratosthenes"""

    def test_primes_below_thirty(self):
        self.assertEqual(sieve_primes(30), (2, 3, 5, 7, 11, 13, 17, 19, 23, 29))

    def test_small_limits(self):
        """Limits below 3 give nothing; the limit itself is excluded"""
        self.assertEqual(sieve_primes(0), ())
        self.assertEqual(sieve_primes(1), ())
        self.assertEqual(sieve_primes(2), ())
        self.assertEqual(sieve_primes(3), (2,))
        self.assertEqual(sieve_primes(4), (2, 3))
        self.assertEqual(sieve_primes(29), (2, 3, 5, 7, 11, 13, 17, 19, 23))

    def test_matches_trial_division(self):
        limit = 5000
        expected = tuple(n for n in range(limit) if _is_prime_trial(n))
        self.assertEqual(sieve_primes(limit), expected)

    def test_strictly_increasing(self):
        primes = sieve_primes(100000)
        self.assertEqual(len(primes), 9592)
        self.assertTrue(all(a < b for a, b in zip(primes, primes[1:])))

    def test_returns_python_ints(self):
        """Entries mix with arbitrary-precision arithmetic"""
        for p in sieve_primes(100):
            self.assertIs(type(p), int)

    def test_memoized(self):
        self.assertIs(sieve_primes(1000), sieve_primes(1000))


class TestPrimalityTesting(unittest.TestCase):
    """Test the Miller-Rabin primality test"""

    def setUp(self):
        self.rng = random.Random(0)

    def test_default_rounds(self):
        self.assertEqual(MILLER_RABIN_ROUNDS, 20)

    def test_agrees_with_trial_division(self):
        """Exact agreement on [0, 10000)"""
        for n in range(10000):
            self.assertEqual(is_prime(n, self.rng), _is_prime_trial(n), f"n={n}")

    def test_edge_cases(self):
        self.assertFalse(is_prime(-5, self.rng))
        self.assertFalse(is_prime(0, self.rng))
        self.assertFalse(is_prime(1, self.rng))
        self.assertTrue(is_prime(2, self.rng))
        self.assertTrue(is_prime(3, self.rng))
        self.assertFalse(is_prime(4, self.rng))

    def test_large_primes(self):
        large_primes = [
            104729,
            15485863,
            2147483647,  # 2^31 - 1
            2**61 - 1,
            2**127 - 1,
            24755137493,
            94628975263,
        ]
        for p in large_primes:
            self.assertTrue(is_prime(p, self.rng), f"{p} should be prime")

    def test_carmichael_numbers(self):
        """Strong test rejects Fermat pseudoprimes"""
        carmichael = [561, 1105, 1729, 2465, 2821, 6601, 8911, 41041, 825265]
        for c in carmichael:
            self.assertFalse(is_prime(c, self.rng), f"{c} is a Carmichael number")

    def test_strong_pseudoprimes(self):
        """Strong pseudoprimes to small fixed bases are still caught"""
        # 3215031751 is a strong pseudoprime to bases 2, 3, 5 and 7
        for n in [2047, 3215031751, 3825123056546413051]:
            self.assertFalse(is_prime(n, self.rng), f"{n} should be composite")

    def test_large_composites(self):
        self.assertFalse(is_prime(24755137493 * 94628975263, self.rng))
        self.assertFalse(is_prime((2**61 - 1) ** 2, self.rng))
        self.assertFalse(is_prime(2**128 + 1, self.rng))

    def test_single_round(self):
        """Even one round never rejects a prime"""
        for p in sieve_primes(2000):
            self.assertTrue(is_prime(p, self.rng, rounds=1))


class TestFindPrime(unittest.TestCase):
    """Test random prime search"""

    def test_result_in_range_and_prime(self):
        rng = random.Random(0)
        lo = 10**18
        for _ in range(20):
            p = find_prime(range(lo, 2 * lo), rng)
            self.assertTrue(lo <= p < 2 * lo)
            self.assertTrue(is_prime(p, rng))

    def test_narrow_range_upper_bound(self):
        """Never returns a candidate at or beyond the end of the range"""
        rng = random.Random(1)
        for _ in range(50):
            p = find_prime(range(1000, 1100), rng)
            self.assertTrue(1000 <= p < 1100)
            self.assertTrue(is_prime(p, rng))

    def test_small_primes_survive_sieve(self):
        """Primes smaller than the window length are not struck"""
        rng = random.Random(2)
        for _ in range(50):
            p = find_prime(range(2, 12), rng)
            self.assertIn(p, (3, 5, 7, 11))

    def test_deterministic(self):
        lo = 2**100
        first = find_prime(range(lo, 2 * lo), random.Random(7))
        second = find_prime(range(lo, 2 * lo), random.Random(7))
        self.assertEqual(first, second)

    def test_empty_range(self):
        with self.assertRaises(ValueError):
            find_prime(range(100, 100), random.Random(0))

    def test_window_budget(self):
        """No primes in range: gives up once the budget is spent"""
        self.assertIsNone(find_prime(range(24, 29), random.Random(0), max_windows=25))


class TestRandomSemiprime(unittest.TestCase):

    def test_distinct_primes_of_requested_size(self):
        rng = random.Random(3)
        for bits in (3, 8, 32, 64):
            p, q, n = random_semiprime(bits, rng)
            self.assertNotEqual(p, q)
            self.assertEqual(p.bit_length(), bits)
            self.assertEqual(q.bit_length(), bits)
            self.assertEqual(n, p * q)
            self.assertTrue(is_prime(p, rng) and is_prime(q, rng))

    def test_too_few_bits(self):
        with self.assertRaises(ValueError):
            random_semiprime(2, random.Random(0))


if __name__ == '__main__':
    unittest.main(verbosity=2)
