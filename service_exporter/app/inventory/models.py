"""
Inventory entities discovered from the Cloudflare REST API.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

FREE_PLAN_ID = "0feeeeeeeeeeeeeeeeeeeeeeeeeeeeee"


def normalize_account_name(name: str) -> str:
    """Account names become label values: lowercase, spaces as dashes."""
    return name.replace(" ", "-").lower()


@dataclass(frozen=True)
class Account:
    """A Cloudflare account."""
    id: str
    name: str

    @property
    def label(self) -> str:
        return normalize_account_name(self.name)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Account":
        return cls(id=payload["id"], name=payload.get("name") or "")


@dataclass(frozen=True)
class Zone:
    """A zone owned by exactly one account."""
    id: str
    name: str
    account_id: str
    account_name: str = ""
    plan_id: Optional[str] = None

    @property
    def account_label(self) -> str:
        return normalize_account_name(self.account_name)

    @property
    def is_free_plan(self) -> bool:
        return self.plan_id == FREE_PLAN_ID

    @classmethod
    def from_api(cls, payload: Dict[str, Any], account: Optional[Account] = None) -> "Zone":
        owner = payload.get("account") or {}
        plan = payload.get("plan") or {}
        return cls(
            id=payload["id"],
            name=payload.get("name") or "",
            account_id=owner.get("id") or (account.id if account else ""),
            account_name=owner.get("name") or (account.name if account else ""),
            plan_id=plan.get("id"),
        )
