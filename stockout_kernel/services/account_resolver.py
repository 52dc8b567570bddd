"""
AccountResolver -- semantic account role to ledger account.

Responsibility:
    Finds the account a journal line posts to.  Roles are resolved through
    the ``account_role_bindings`` lookup table:

        1. binding for (role, branch)          -- branch-specific
        2. binding for (role, NULL)            -- generic
        3. name search (when allow_name_fallback is on):
             INVENTORY_ASSET: "Inventory - {branch_name}", then "Inventory"
             other roles:     the configured account name
           Case-insensitive, filtered by account type, active accounts only.

    Name search exists to support charts of accounts that predate the role
    bindings; each hit is logged as ``account_resolved_by_name``.

Architecture position:
    Kernel > Services.  Read-only.

Failure modes:
    - Lookups return None when nothing matches.  ``require()`` turns a miss
      into AccountNotFoundError; that is a hard stop for journal posting.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stockout_kernel.domain.journal import loss_role_for
from stockout_kernel.domain.reasons import StockOutReason
from stockout_kernel.domain.settings import AccountRole, AccountSettings
from stockout_kernel.exceptions import AccountNotFoundError
from stockout_kernel.logging_config import get_logger
from stockout_kernel.models.account import Account, AccountRoleBinding
from stockout_kernel.models.branch import Branch
from stockout_kernel.services.base import BaseService

logger = get_logger("services.account_resolver")


class AccountResolver(BaseService):
    """Resolves account ids by role or by name."""

    def __init__(self, session: Session, settings: AccountSettings | None = None):
        super().__init__(session)
        self._settings = settings or AccountSettings()

    # -- name lookup -------------------------------------------------------

    def resolve_account(self, name: str, account_type: str | None = None) -> UUID | None:
        """Case-insensitive name match among active accounts, or None."""
        stmt = (
            select(Account.id)
            .where(
                func.lower(Account.name) == name.strip().lower(),
                Account.is_active.is_(True),
            )
            .order_by(Account.code)
        )
        if account_type is not None:
            stmt = stmt.where(Account.account_type == account_type)
        matches = self.session.execute(stmt).scalars().all()
        if len(matches) > 1:
            logger.warning(
                "ambiguous_account_name",
                extra={"account_name": name, "match_count": len(matches)},
            )
        return matches[0] if matches else None

    # -- role lookup -------------------------------------------------------

    def _bound_account(self, role: AccountRole, branch_id: UUID | None) -> UUID | None:
        stmt = (
            select(AccountRoleBinding.account_id)
            .join(Account, Account.id == AccountRoleBinding.account_id)
            .where(
                AccountRoleBinding.role == role.value,
                Account.is_active.is_(True),
            )
        )
        if branch_id is None:
            stmt = stmt.where(AccountRoleBinding.branch_id.is_(None))
        else:
            stmt = stmt.where(AccountRoleBinding.branch_id == branch_id)
        return self.session.execute(stmt.limit(1)).scalar_one_or_none()

    def _by_name(self, role: AccountRole, branch_id: UUID | None) -> UUID | None:
        spec = self._settings.spec_for(role)
        if spec is None:
            return None

        candidates: list[str] = []
        if spec.branch_name_template and branch_id is not None:
            branch = self.session.get(Branch, branch_id)
            if branch is not None:
                candidates.append(spec.branch_name_template.format(branch_name=branch.name))
        candidates.append(spec.account_name)

        for name in candidates:
            account_id = self.resolve_account(name, spec.account_type)
            if account_id is not None:
                logger.info(
                    "account_resolved_by_name",
                    extra={
                        "role": role.value,
                        "branch_id": str(branch_id) if branch_id else None,
                        "account_name": name,
                        "account_id": str(account_id),
                    },
                )
                return account_id
        return None

    def resolve_role(self, role: AccountRole, branch_id: UUID | None = None) -> UUID | None:
        """Account bound to a role for a branch, or None."""
        role = AccountRole(role)
        if branch_id is not None:
            account_id = self._bound_account(role, branch_id)
            if account_id is not None:
                return account_id
        account_id = self._bound_account(role, None)
        if account_id is not None:
            return account_id
        if self._settings.allow_name_fallback:
            return self._by_name(role, branch_id)
        return None

    def resolve_inventory_account(self, branch_id: UUID) -> UUID | None:
        """Inventory asset account of a branch, falling back to the generic one."""
        return self.resolve_role(AccountRole.INVENTORY_ASSET, branch_id)

    def resolve_loss_account(self, reason: StockOutReason, branch_id: UUID | None = None) -> UUID | None:
        """Expense account debited for a loss with this reason."""
        return self.resolve_role(loss_role_for(reason), branch_id)

    def require(self, role: AccountRole, branch_id: UUID | None = None) -> UUID:
        """
        Like resolve_role() but a miss is an error.

        Raises:
            AccountNotFoundError: nothing bound or named for the role.
        """
        account_id = self.resolve_role(role, branch_id)
        if account_id is None:
            logger.error(
                "account_not_found",
                extra={
                    "role": AccountRole(role).value,
                    "branch_id": str(branch_id) if branch_id else None,
                },
            )
            raise AccountNotFoundError(
                AccountRole(role).value,
                str(branch_id) if branch_id else None,
            )
        return account_id
