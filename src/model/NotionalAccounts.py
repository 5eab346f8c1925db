from dataclasses import dataclass, replace

# Magnitudes under this are treated as zero when checking pool balances
POOL_EPSILON = 1e-6


@dataclass(frozen=True)
class NotionalAccounts:
    """Corporate notional tax pools plus corporate investment cash.

    Instances are never mutated: every transition returns a new value, so a
    year's starting accounts can be handed to several strategies safely.
    """
    cda: float = 0.0
    erdtoh: float = 0.0
    nrdtoh: float = 0.0
    grip: float = 0.0
    corporate_investments: float = 0.0

    def with_changes(self, **changes) -> 'NotionalAccounts':
        return replace(self, **changes)

    def pools_non_negative(self) -> bool:
        return all(v >= -POOL_EPSILON for v in (self.cda, self.erdtoh, self.nrdtoh, self.grip))

    def to_dict(self) -> dict:
        return {
            "cda": self.cda,
            "erdtoh": self.erdtoh,
            "nrdtoh": self.nrdtoh,
            "grip": self.grip,
            "corporate_investments": self.corporate_investments,
        }
