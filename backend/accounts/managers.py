import logging

from django.contrib.auth.base_user import BaseUserManager
from django.db import IntegrityError, models, transaction
from django.utils import timezone

logger = logging.getLogger(__name__)


class AccountManager(models.Manager):
    """
    Manager for the Account ledger.

    Accounts are keyed by the external identity; the email is a second
    unique key used to re-link an account when the provider issues a new
    identity for the same person.
    """

    def sync(self, external_id, email, display_name=''):
        """
        Get-or-create the account for an externally verified identity.

        Lookup order: identity, then email (identity re-linked in place),
        then create. Two first-syncs racing on the same identity/email end
        with one row: the loser hits the unique constraint and re-fetches.
        Every sync applies the daily XP reset.
        """
        if not external_id:
            raise ValueError('The external identity must be set!')
        if not email:
            raise ValueError('The email must be set!')

        email = BaseUserManager.normalize_email(email)
        display_name = display_name or ''

        account = self.filter(external_id=external_id).first()
        if account is not None:
            self._refresh_profile(account, email=email, display_name=display_name)
        else:
            account = self.filter(email=email).first()
            if account is not None:
                logger.info(f"Re-linking account {account.pk} to identity {external_id}")
                account.external_id = external_id
                account.display_name = display_name
                account.save(update_fields=['external_id', 'display_name'])
            else:
                account = self._create_or_refetch(external_id, email, display_name)

        self.reset_daily_if_stale(account)
        return account

    def _refresh_profile(self, account, email, display_name):
        fields = []
        if account.email != email:
            account.email = email
            fields.append('email')
        if account.display_name != display_name:
            account.display_name = display_name
            fields.append('display_name')
        if not fields:
            return

        try:
            with transaction.atomic():
                account.save(update_fields=fields)
        except IntegrityError:
            # Email already owned by another account; keep the stored one.
            logger.warning(
                f"Email {email} is linked to another account; "
                f"keeping profile of account {account.pk} unchanged"
            )
            account.refresh_from_db(fields=['email', 'display_name'])

    def _create_or_refetch(self, external_id, email, display_name):
        try:
            with transaction.atomic():
                account = self.create(
                    external_id=external_id,
                    email=email,
                    display_name=display_name,
                )
            logger.info(f"Created account {account.pk} for identity {external_id}")
            return account
        except IntegrityError:
            logger.info(f"Concurrent sync for {external_id}; re-fetching existing account")
            account = (
                self.filter(external_id=external_id).first()
                or self.filter(email=email).first()
            )
            if account is None:
                raise
            return account

    def reset_daily_if_stale(self, account, now=None):
        """
        Zero `daily_xp` when the last activity is not on today's UTC date.

        Runs as a single conditional UPDATE so a completion landing at the
        same moment is never overwritten.
        """
        now = now or timezone.now()
        updated = (
            self.filter(pk=account.pk)
            .exclude(last_log_date__date=now.date())
            .exclude(daily_xp=0)
            .update(daily_xp=0)
        )
        if updated:
            logger.info(f"Daily XP reset for account {account.pk}")
            account.daily_xp = 0
        return bool(updated)
