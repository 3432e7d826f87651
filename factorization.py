"""
Integer factorization using Lenstra's elliptic curve method (ECM).

Curves are Weierstrass curves y² = x³ + ax + b (mod n) in affine coordinates.
Since Z/nZ is not a field, computing a slope can require inverting a
non-unit; the extended Euclidean algorithm then yields gcd(denominator, n)
instead of an inverse, and that gcd is the factor ECM is looking for.

LAYERS:
1. Modular inverse: extended_gcd(), mod_inverse() -> Inverse | CommonFactor
2. Curve arithmetic: EllipticCurve.add(), EllipticCurve.multiply()
3. Driver: find_factor() over a prime power schedule below 2^(bits/5)
4. Full factorization: trial_division(), perfect_power(), factor()

Randomness is always an explicit random.Random; the default is seeded with
DEFAULT_SEED so repeated runs pick the same curves.
"""
import argparse
import logging
import random
import sys
from dataclasses import dataclass
from functools import lru_cache
from typing import NamedTuple

from primes import is_prime, sieve_primes

logger = logging.getLogger(__name__)

DEFAULT_SEED = 0

# Trial division bound used by factor()
SMALL_PRIMES_LIMIT = 10000

# Floor for the smoothness bound so tiny moduli still get a schedule
MIN_SMOOTHNESS_BOUND = 16


class InvalidModulus(ValueError):
    """Raised when find_factor() is given something ECM cannot split."""


# ============================================================================
# MODULAR INVERSE
# ============================================================================

@dataclass(frozen=True)
class Inverse:
    value: int


@dataclass(frozen=True)
class CommonFactor:
    factor: int


def extended_gcd(a: int, b: int) -> tuple[int, int, int]:
    """
    Extended Euclidean algorithm.

    Returns:
        (g, x, y) with a*x + b*y == g and g == gcd(|a|, |b|) >= 0
    """
    old_r, r = a, b
    old_x, x = 1, 0
    old_y, y = 0, 1
    while r != 0:
        q = old_r // r
        old_r, r = r, old_r - q * r
        old_x, x = x, old_x - q * x
        old_y, y = y, old_y - q * y
    if old_r < 0:
        return -old_r, -old_x, -old_y
    return old_r, old_x, old_y


def mod_inverse(a: int, n: int) -> Inverse | CommonFactor:
    """
    Invert a modulo n, or report gcd(|a|, n) when no inverse exists.

    A CommonFactor is a normal result, not an error: with n composite it is
    how curve arithmetic exposes a divisor. a ≡ 0 (mod n) gives
    CommonFactor(n), which carries no information.
    """
    if n <= 0:
        raise ValueError(f"modulus must be positive, got {n}")
    g, x, _ = extended_gcd(a % n, n)
    if g != 1:
        return CommonFactor(g)
    return Inverse(x % n)


# ============================================================================
# ELLIPTIC CURVE ARITHMETIC
# ============================================================================

class Point(NamedTuple):
    x: int
    y: int


@dataclass(frozen=True)
class EllipticCurve:
    """
    y² = x³ + ax + b (mod m).

    b never enters the addition formulas, so it is not stored; any point is
    on the curve for exactly one b. The modulus is passed to each operation.
    """
    a: int

    def add(self, p: Point, q: Point, m: int) -> Point | CommonFactor:
        """
        Add two points, doubling when they share an x coordinate.

        Returns the sum, or the CommonFactor met while inverting the slope
        denominator.
        """
        if p.x == q.x:
            inv = mod_inverse(2 * p.y, m)
            if isinstance(inv, CommonFactor):
                return inv
            lam = (3 * p.x * p.x + self.a) * inv.value % m
        else:
            inv = mod_inverse(q.x - p.x, m)
            if isinstance(inv, CommonFactor):
                return inv
            lam = (q.y - p.y) * inv.value % m

        x = (lam * lam - p.x - q.x) % m
        return Point(x, (lam * (p.x - x) - p.y) % m)

    def multiply(self, p: Point, k: int, m: int) -> Point | CommonFactor:
        """
        Scalar multiplication k*P by left-to-right double-and-add.

        Stops at the first CommonFactor.
        """
        if k < 1:
            raise ValueError(f"scalar must be positive, got {k}")

        result: Point | CommonFactor = p
        for bit in bin(k)[3:]:
            result = self.add(result, result, m)
            if isinstance(result, CommonFactor):
                return result
            if bit == '1':
                result = self.add(result, p, m)
                if isinstance(result, CommonFactor):
                    return result
        return result


# ============================================================================
# ECM DRIVER
# ============================================================================

def smoothness_bound(n: int) -> int:
    """B = 2^(bits(n) / 5), the stage 1 bound for a factor of unknown size."""
    return max(1 << (n.bit_length() // 5), MIN_SMOOTHNESS_BOUND)


@lru_cache(maxsize=16)
def prime_power_schedule(bound: int) -> tuple[int, ...]:
    """For each prime q < bound, the largest power of q below bound."""
    schedule = []
    for q in sieve_primes(bound):
        pp = q
        while pp * q < bound:
            pp *= q
        schedule.append(pp)
    return tuple(schedule)


def _check_modulus(n: int, rng: random.Random) -> None:
    if n < 3:
        raise InvalidModulus(f"{n} is too small to factor")
    if (n & 1) == 0:
        raise InvalidModulus(f"{n} is even; divide out 2 first")
    if is_prime(n, rng):
        raise InvalidModulus(f"{n} is prime")


def _run_curve(curve: EllipticCurve, point: Point, schedule: tuple[int, ...], n: int) -> int | None:
    """Stage 1 on one curve. Returns a proper factor, or None if the curve is spent."""
    for k in schedule:
        result = curve.multiply(point, k, n)
        if isinstance(result, CommonFactor):
            if result.factor == n:
                # Every prime of n hit the identity together
                logger.debug("curve a=%d degenerated at k=%d", curve.a, k)
                return None
            return result.factor
        point = result
    return None


def find_factor(
    n: int,
    rng: random.Random | None = None,
    *,
    seed: int = DEFAULT_SEED,
    max_curves: int | None = None,
) -> int | None:
    """
    Find a nontrivial factor of n with Lenstra's elliptic curve method.

    Args:
        n: Odd composite with at least two distinct prime factors
        rng: Random source for curves and points (default: Random(seed))
        seed: Seed used when rng is not given
        max_curves: Optional cap on curves tried (None tries forever)

    Returns:
        A factor f with 1 < f < n, or None if max_curves ran out

    Raises:
        InvalidModulus: n < 3, n even or n prime
    """
    if rng is None:
        rng = random.Random(seed)
    _check_modulus(n, rng)

    bound = smoothness_bound(n)
    schedule = prime_power_schedule(bound)
    logger.debug("n=%d bound=%d prime powers=%d", n, bound, len(schedule))

    curves = 0
    while max_curves is None or curves < max_curves:
        curves += 1
        curve = EllipticCurve(rng.randrange(1, n))
        point = Point(rng.randrange(1, n), rng.randrange(1, n))
        logger.debug("curve %d: a=%d P=(%d, %d)", curves, curve.a, point.x, point.y)

        found = _run_curve(curve, point, schedule, n)
        if found is not None:
            logger.info("found factor %d of %d on curve %d", found, n, curves)
            return found

    logger.debug("no factor of %d after %d curves", n, curves)
    return None


# ============================================================================
# FULL FACTORIZATION
# ============================================================================

def trial_division(n: int, bound: int = SMALL_PRIMES_LIMIT) -> tuple[list[int], int]:
    """
    Divide out every prime below bound.

    Returns:
        (factors found with multiplicity, remaining cofactor)
    """
    factors: list[int] = []
    for p in sieve_primes(bound):
        if p * p > n:
            break
        while n % p == 0:
            factors.append(p)
            n //= p
    if 1 < n < bound:
        factors.append(n)
        n = 1
    return factors, n


def _integer_root(n: int, k: int) -> int:
    """floor(n ** (1/k)) by Newton's method."""
    if n < 2:
        return n
    x = 1 << -(-n.bit_length() // k)
    while True:
        y = ((k - 1) * x + n // x ** (k - 1)) // k
        if y >= x:
            return x
        x = y


def perfect_power(n: int) -> tuple[int, int]:
    """
    Write n as r^k with k >= 2 prime, if possible.

    Returns:
        (r, k), or (n, 1) when n is not a perfect power
    """
    if n < 4:
        return n, 1
    for k in sieve_primes(n.bit_length() + 1):
        r = _integer_root(n, k)
        if r < 2:
            break
        if r ** k == n:
            return r, k
    return n, 1


def factor(n: int, rng: random.Random | None = None, *, seed: int = DEFAULT_SEED) -> list[int]:
    """
    Factorize |n| into primes, sorted, with multiplicity.

    Small primes go by trial division; what remains is split by perfect power
    detection and ECM until every piece tests prime.
    """
    n = abs(n)
    if n == 0:
        raise ValueError("0 has no prime factorization")
    if rng is None:
        rng = random.Random(seed)

    factors, rem = trial_division(n)
    pending = [rem] if rem > 1 else []
    while pending:
        m = pending.pop()
        if is_prime(m, rng):
            factors.append(m)
            continue
        root, k = perfect_power(m)
        if k > 1:
            pending.extend([root] * k)
            continue
        d = find_factor(m, rng)
        pending.extend([d, m // d])

    return sorted(factors)


def clear_caches():
    """Clear memoized prime tables and schedules."""
    sieve_primes.cache_clear()
    prime_power_schedule.cache_clear()


# ============================================================================
# COMMAND LINE
# ============================================================================

def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find factors of integers with Lenstra's elliptic curve method."
    )
    parser.add_argument('numbers', nargs='+', type=int, metavar='N',
                        help='Integers to factor')
    parser.add_argument('--seed', type=int, default=DEFAULT_SEED,
                        help=f'Random seed for curve selection (default: {DEFAULT_SEED})')
    parser.add_argument('--max-curves', type=int, default=None,
                        help='Give up after this many curves (default: no limit)')
    parser.add_argument('--full', action='store_true',
                        help='Print the complete prime factorization')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    return parser


def main(argv: list[str] | None = None) -> int:
    args = create_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    status = 0
    for n in args.numbers:
        rng = random.Random(args.seed)
        if args.full:
            try:
                print(f"{n}: {' '.join(map(str, factor(n, rng)))}")
            except ValueError as e:
                logger.error("%s", e)
                status = 1
            continue

        try:
            f = find_factor(n, rng, max_curves=args.max_curves)
        except InvalidModulus as e:
            logger.error("%s", e)
            status = 1
            continue
        if f is None:
            logger.warning("no factor of %d within %d curves", n, args.max_curves)
            status = 1
        else:
            print(f"{n}: {f}")
    return status


if __name__ == "__main__":
    sys.exit(main())
