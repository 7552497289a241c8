"""
Address value object.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Address:
    """Service address of a job."""

    street: str
    city: str
    state: str
    pincode: str

    def __post_init__(self):
        """Validate address fields."""
        if not self.street or not self.street.strip():
            raise ValueError("Street is required")
        if not self.city or not self.city.strip():
            raise ValueError("City is required")
        if not self.state or not self.state.strip():
            raise ValueError("State is required")
        if not self.pincode or not self.pincode.strip():
            raise ValueError("Pincode is required")

    @property
    def full_address(self) -> str:
        """Get formatted full address."""
        return f"{self.street}, {self.city}, {self.state} {self.pincode}"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
        }
