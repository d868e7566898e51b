"""
Secret provisioning workflow for Pantry Manager
Creates every missing secret of the catalog in the secret store, one at a time,
and reports which ARNs need to go into the deployment config.

A run is idempotent: secrets that already exist are never overwritten, so a
re-run only acts on whatever a previous run left unresolved.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .exceptions import AbortedByOperator, FatalStoreError, SecretStoreError
from .interactive_io import InteractiveIO
from .secret_catalog import SECRET_CATALOG, SecretDescriptor, validate_catalog
from .secrets_client import SecretStore, describe_store

logger = logging.getLogger(__name__)

RULE_WIDTH = 70
CONFIG_TARGET = 'src/pantry_deploy/config.py'


@dataclass(frozen=True)
class CreatedSecret:
    name: str
    identifier: str
    reference_key: str


@dataclass(frozen=True)
class FailedSecret:
    name: str
    reason: str
    required_missing: bool = False


@dataclass
class ProvisioningOutcome:
    """Per-run classification of every catalog entry"""
    created: List[CreatedSecret] = field(default_factory=list)
    skipped_existing: List[str] = field(default_factory=list)
    skipped_or_failed: List[FailedSecret] = field(default_factory=list)
    skipped_optional: List[str] = field(default_factory=list)

    @property
    def counts(self) -> Dict[str, int]:
        return {
            'created': len(self.created),
            'skipped_existing': len(self.skipped_existing),
            'skipped_or_failed': len(self.skipped_or_failed),
            'skipped_optional': len(self.skipped_optional),
        }

    @property
    def created_names(self) -> List[str]:
        return [secret.name for secret in self.created]

    @property
    def failed_names(self) -> List[str]:
        return [secret.name for secret in self.skipped_or_failed]

    @property
    def needs_rerun(self) -> bool:
        return bool(self.skipped_or_failed)

    @property
    def is_deployment_ready(self) -> bool:
        """Every required secret now exists in the store"""
        return not self.needs_rerun

    def reference_listing(self) -> List[str]:
        """
        Created identifiers as config lines, keyed by reference key

        Entries are kept in the order they were created, which is catalog order.
        """
        return [f'"{secret.reference_key}": "{secret.identifier}",' for secret in self.created]


class SecretProvisioner:
    """Walks the catalog and provisions each missing secret"""

    def __init__(
        self,
        store: SecretStore,
        io: InteractiveIO,
        catalog: Sequence[SecretDescriptor] = SECRET_CATALOG,
    ):
        validate_catalog(catalog)
        self.store = store
        self.io = io
        self.catalog = tuple(catalog)

    def run(self) -> ProvisioningOutcome:
        """
        Execute one provisioning run

        Returns:
            Outcome classifying every descriptor of the catalog

        Raises:
            AbortedByOperator: If the confirmation gate is declined
            FatalStoreError: If an existence check fails for a reason other than "not found"
        """
        self._confirm_plan()

        outcome = ProvisioningOutcome()
        for descriptor in self.catalog:
            self._provision(descriptor, outcome)

        logger.info(f"Provisioning finished: {outcome.counts}")
        if outcome.created_names:
            logger.info(f"Created secrets: {', '.join(outcome.created_names)}")
        if outcome.failed_names:
            logger.warning(f"Secrets still missing: {', '.join(outcome.failed_names)}")
        self.io.report(self.summary_lines(outcome))
        return outcome

    def _confirm_plan(self) -> None:
        self.io.report([
            '',
            '=' * RULE_WIDTH,
            '  Pantry Manager - AWS Secrets Manager Setup',
            '  PREREQUISITE: Run BEFORE `cdk deploy`',
            '=' * RULE_WIDTH,
            '',
            f'Secret store: {describe_store(self.store)}',
            f'Secrets in catalog: {len(self.catalog)}',
            '',
            'This script will create all required secrets in AWS Secrets Manager.',
            'These secrets must exist before deploying the CDK stack.',
            '',
            '⚠️  Existing secrets will be skipped (not overwritten).',
            '',
        ])

        if not self.io.confirm('Do you want to proceed? (yes/no): '):
            logger.info("Provisioning aborted at confirmation gate")
            self.io.report(['', '❌ Aborted.'])
            raise AbortedByOperator("Operator declined to proceed")

    def _provision(self, descriptor: SecretDescriptor, outcome: ProvisioningOutcome) -> None:
        lines = [
            '',
            '─' * RULE_WIDTH,
            '',
            f'📝 Secret: {descriptor.name}',
            f'   Description: {descriptor.description}',
        ]
        if descriptor.example:
            lines.append(f'   Example/Help: {descriptor.example}')
        self.io.report(lines)

        try:
            exists = self.store.exists(descriptor.name)
        except SecretStoreError as e:
            logger.error(f"Existence check failed for {descriptor.name}: {e}")
            raise FatalStoreError(descriptor.name, e) from e

        if exists:
            self.io.report(['   ℹ️  Secret already exists. Skipping...'])
            outcome.skipped_existing.append(descriptor.name)
            return

        value = self.io.prompt_value(
            f'\n   Enter value for {descriptor.name} (or press Enter to skip): '
        ).strip()

        if not value:
            if descriptor.required:
                self.io.report(['   ⚠️  This secret is required but was skipped.'])
                outcome.skipped_or_failed.append(
                    FailedSecret(descriptor.name, 'required value not provided', required_missing=True)
                )
            else:
                self.io.report(['   ⏭️  Skipped.'])
                outcome.skipped_optional.append(descriptor.name)
            return

        try:
            identifier = self.store.create(descriptor.name, value, descriptor.description)
        except SecretStoreError as e:
            logger.warning(f"Could not create {descriptor.name}: {e}")
            self.io.report([f'   ❌ Error creating secret: {e}'])
            outcome.skipped_or_failed.append(FailedSecret(descriptor.name, str(e)))
            return

        outcome.created.append(CreatedSecret(descriptor.name, identifier, descriptor.reference_key))
        self.io.report([
            '   ✅ Created successfully!',
            f'   ARN: {identifier}',
        ])

    def summary_lines(self, outcome: ProvisioningOutcome) -> List[str]:
        """Render the end-of-run report"""
        lines = [
            '',
            '═' * RULE_WIDTH,
            '',
            '📊 SUMMARY:',
            '',
            f'   ✅ Created: {len(outcome.created)} secret(s)',
            f'   ⏭️  Skipped (already exist): {len(outcome.skipped_existing)} secret(s)',
            f'   ❌ Failed/Missing: {len(outcome.skipped_or_failed)} secret(s)',
        ]
        if outcome.skipped_optional:
            lines.append(f'   ⏭️  Skipped (optional, no value): {len(outcome.skipped_optional)} secret(s)')

        if outcome.created:
            lines.extend([
                '',
                '=' * RULE_WIDTH,
                f'  UPDATE {CONFIG_TARGET}',
                '=' * RULE_WIDTH,
                '',
                f'Copy the following entries into SECRET_ARNS in {CONFIG_TARGET}:',
                '',
                'SECRET_ARNS = {',
            ])
            lines.extend(f'    {entry}' for entry in outcome.reference_listing())
            lines.append('}')

        if outcome.skipped_existing:
            lines.extend(['', '⏭️  Skipped Secrets (already exist):', ''])
            lines.extend(f'   - {name}' for name in outcome.skipped_existing)

        if outcome.skipped_or_failed:
            lines.extend(['', '❌ Failed/Missing Secrets:', ''])
            for failed in outcome.skipped_or_failed:
                lines.append(f'   - {failed.name} ({failed.reason})')
            lines.extend([
                '',
                '⚠️  WARNING: You must create these secrets before running `cdk deploy`!',
                '   Run this script again to create the missing secrets.',
            ])

        lines.extend(['', '═' * RULE_WIDTH, '', '📋 NEXT STEPS:', ''])
        if outcome.created:
            lines.append(f'   1. ✏️  Update {CONFIG_TARGET} with the ARNs shown above')

        if outcome.is_deployment_ready:
            lines.extend([
                '   2. ✅ All secrets are ready!',
                '   3. 🚀 Run: cdk deploy',
            ])
        else:
            lines.extend([
                '   2. ⚠️  Create missing secrets by running this script again',
                '   3. 🚀 After all secrets exist, run: cdk deploy',
            ])

        lines.extend(['', '✨ Done!', ''])
        return lines


def run(
    catalog: Sequence[SecretDescriptor],
    store: SecretStore,
    io: InteractiveIO,
) -> ProvisioningOutcome:
    """Convenience function to run a provisioning pass"""
    return SecretProvisioner(store, io, catalog).run()
