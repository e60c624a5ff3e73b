"""Intent-triggered actions Luna can take on behalf of a player."""

from typing import Dict, List, Optional

from actions.base import Action, ActionContext
from actions.get_active_game import GetActiveGameAction
from actions.get_balance import GetBalanceAction
from actions.get_outposts import GetOutpostsAction
from actions.purchase_outpost import PurchaseOutpostAction
from actions.purchase_reinforcement import PurchaseReinforcementAction
from actions.reinforce_outpost import ReinforceOutpostAction
from actions.revoke_outpost_sale import RevokeOutpostSaleAction
from actions.sell_outpost import SellOutpostAction


def default_actions() -> List[Action]:
    return [
        GetActiveGameAction(),
        GetBalanceAction(),
        GetOutpostsAction(),
        PurchaseOutpostAction(),
        PurchaseReinforcementAction(),
        ReinforceOutpostAction(),
        SellOutpostAction(),
        RevokeOutpostSaleAction(),
    ]


class ActionRegistry:
    """Looks actions up by name or simile."""

    def __init__(self, actions: Optional[List[Action]] = None):
        self.actions: Dict[str, Action] = {}
        self._aliases: Dict[str, str] = {}
        for action in actions if actions is not None else default_actions():
            self.register(action)

    def register(self, action: Action) -> None:
        self.actions[action.name] = action
        for simile in action.similes:
            self._aliases[simile] = action.name

    def resolve_name(self, name: Optional[str]) -> Optional[str]:
        if not name:
            return None
        key = name.strip().upper()
        if key in self.actions:
            return key
        return self._aliases.get(key)

    def get(self, name: Optional[str]) -> Optional[Action]:
        resolved = self.resolve_name(name)
        return self.actions.get(resolved) if resolved else None

    def __iter__(self):
        return iter(self.actions.values())

    def __len__(self) -> int:
        return len(self.actions)


__all__ = [
    "Action",
    "ActionContext",
    "ActionRegistry",
    "default_actions",
    "GetActiveGameAction",
    "GetBalanceAction",
    "GetOutpostsAction",
    "PurchaseOutpostAction",
    "PurchaseReinforcementAction",
    "ReinforceOutpostAction",
    "RevokeOutpostSaleAction",
    "SellOutpostAction",
]
