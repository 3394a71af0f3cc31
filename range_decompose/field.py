"""
Prime Field Arithmetic

Plain-integer arithmetic modulo the Pallas base-field prime. Every cell value
handled by the constraint system is a canonical representative in [0, p).
"""

# Pallas base field: p = 2^254 + 45560315531419706090280762371685220353
MODULUS = 0x40000000000000000000000000000000224698fc094cf91b992d30ed00000001

# Bits needed to hold any canonical element
NUM_BITS = MODULUS.bit_length()


class PrimeField:
    """
    Arithmetic over GF(q) on Python ints.

    Elements are never wrapped in objects: every operation takes and returns
    canonical ints, which keeps assignments cheap to copy and compare.
    """

    def __init__(self, q: int = MODULUS):
        """
        Initialize field.

        Args:
            q: Field characteristic (must be an odd prime)
        """
        if q < 3:
            raise ValueError(f"Field modulus must be an odd prime, got {q}")
        self.q = q

    def __repr__(self) -> str:
        return f"PrimeField({hex(self.q)})"

    def __eq__(self, other) -> bool:
        return isinstance(other, PrimeField) and other.q == self.q

    def __hash__(self) -> int:
        return hash(self.q)

    def reduce(self, value: int) -> int:
        """Map any integer to its canonical representative."""
        return value % self.q

    def is_canonical(self, value: int) -> bool:
        return 0 <= value < self.q

    def add(self, a: int, b: int) -> int:
        return (a + b) % self.q

    def mul(self, a: int, b: int) -> int:
        return (a * b) % self.q

    def neg(self, a: int) -> int:
        return (-a) % self.q

    def format(self, value: int) -> str:
        """
        Render an element the way constraint debuggers print cell values.

        Small elements print as hex; elements close to the modulus print as
        negatives so that wrapped values are easy to spot.
        """
        value = value % self.q
        negated = self.q - value
        if negated < value and negated.bit_length() <= 64:
            return f"-{hex(negated)}"
        return hex(value)


# Field used by default throughout the package
DEFAULT_FIELD = PrimeField(MODULUS)
