"""Decision table choosing how a submission's portal account is handled.

Each rule lists the facts it requires; ``None`` means the fact is irrelevant to
that rule. Rules are evaluated in order and the first match wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final


class AccountAction(StrEnum):
    UPDATE_LINKED_PERSON = "update_linked_person"
    INVITE_AND_UPDATE = "invite_and_update"
    INVITE_NEW = "invite_new"
    BIND_EXISTING_PERSON = "bind_existing_person"
    CREATE_PERSON_FOR_ACCOUNT = "create_person_for_account"
    CREATE_PERSON_WITHOUT_ACCOUNT = "create_person_without_account"
    NONE = "none"


@dataclass(frozen=True, slots=True, kw_only=True)
class Facts:
    visit_exists: bool
    account_exists: bool
    email_valid: bool
    phone_valid: bool
    person_exists: bool


@dataclass(frozen=True, slots=True, kw_only=True)
class DecisionRule:
    action: AccountAction
    visit_exists: bool | None = None
    account_exists: bool | None = None
    email_valid: bool | None = None
    phone_valid: bool | None = None
    person_exists: bool | None = None

    def matches(self, facts: Facts) -> bool:
        expected = (
            (self.visit_exists, facts.visit_exists),
            (self.account_exists, facts.account_exists),
            (self.email_valid, facts.email_valid),
            (self.phone_valid, facts.phone_valid),
            (self.person_exists, facts.person_exists),
        )
        return all(want is None or want == have for want, have in expected)


ACCOUNT_RULES: Final[tuple[DecisionRule, ...]] = (
    # existing visit
    DecisionRule(
        action=AccountAction.UPDATE_LINKED_PERSON, visit_exists=True, account_exists=True
    ),
    DecisionRule(
        action=AccountAction.INVITE_AND_UPDATE,
        visit_exists=True,
        account_exists=False,
        email_valid=True,
    ),
    DecisionRule(action=AccountAction.NONE, visit_exists=True),
    # new visit
    DecisionRule(
        action=AccountAction.INVITE_NEW, visit_exists=False, account_exists=False, email_valid=True
    ),
    DecisionRule(
        action=AccountAction.BIND_EXISTING_PERSON,
        visit_exists=False,
        account_exists=True,
        person_exists=True,
    ),
    DecisionRule(
        action=AccountAction.CREATE_PERSON_FOR_ACCOUNT,
        visit_exists=False,
        account_exists=True,
        person_exists=False,
    ),
    DecisionRule(
        action=AccountAction.CREATE_PERSON_WITHOUT_ACCOUNT,
        visit_exists=False,
        account_exists=False,
        email_valid=False,
        phone_valid=True,
        person_exists=False,
    ),
    DecisionRule(action=AccountAction.NONE),
)


def decide_account_action(
    facts: Facts, rules: tuple[DecisionRule, ...] = ACCOUNT_RULES
) -> AccountAction:
    for rule in rules:
        if rule.matches(facts):
            return rule.action
    return AccountAction.NONE
