from typing import Any

from pydantic import BaseModel, ConfigDict


class CustomerData(BaseModel):
    """Known keys of a customer's processor-specific data bag.

    Marketplace sub-account ids are carried over from the legacy owner
    ``pay_data`` column. Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    stripe_account: str | None = None
    braintree_account: str | None = None

    @classmethod
    def from_bag(cls, bag: Any) -> "CustomerData":
        """Build from a stored JSON bag; anything but a mapping counts as empty."""
        if not isinstance(bag, dict):
            return cls()
        return cls.model_validate(bag)

    def as_bag(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
