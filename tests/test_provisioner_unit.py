"""
Unit tests for provisioner module
Tests the confirm / check / prompt / create workflow against in-memory fakes
"""
import logging
import pytest

from fakes import InMemoryStore, ScriptedIO
from pantry_deploy.exceptions import (
    AbortedByOperator,
    FatalStoreError,
    InvalidValue,
    PermissionDenied,
    StoreUnavailable,
)
from pantry_deploy.provisioner import (
    CreatedSecret,
    FailedSecret,
    ProvisioningOutcome,
    SecretProvisioner,
    run,
)
from pantry_deploy.secret_catalog import SECRET_CATALOG, SecretDescriptor


@pytest.mark.unit
class TestConfirmationGate:
    """Test the single confirmation before any store call"""

    def test_decline_aborts_without_store_calls(self, small_catalog):
        store = InMemoryStore()
        io = ScriptedIO(confirm=False)

        with pytest.raises(AbortedByOperator):
            run(small_catalog, store, io)

        assert store.exists_calls == []
        assert store.create_calls == []
        assert io.value_prompts == []
        assert '❌ Aborted.' in io.lines

    def test_plan_shown_before_confirmation(self, small_catalog):
        io = ScriptedIO(confirm=False)

        with pytest.raises(AbortedByOperator):
            run(small_catalog, InMemoryStore(region='eu-west-1'), io)

        assert 'Secret store: eu-west-1' in io.lines
        assert '⚠️  Existing secrets will be skipped (not overwritten).' in io.lines
        assert io.confirm_prompts == ['Do you want to proceed? (yes/no): ']

    def test_empty_catalog_rejected(self):
        with pytest.raises(ValueError):
            SecretProvisioner(InMemoryStore(), ScriptedIO(), catalog=())


@pytest.mark.unit
class TestProvisioningScenarios:
    """Test the per-descriptor classification"""

    def test_existing_required_and_optional_skip(self):
        catalog = (
            SecretDescriptor(name='a', description='A', reference_key='A', required=True),
            SecretDescriptor(name='b', description='B', reference_key='B', required=False),
        )
        store = InMemoryStore(existing=['a'])
        io = ScriptedIO(values={})

        outcome = run(catalog, store, io)

        assert outcome.skipped_existing == ['a']
        assert outcome.skipped_or_failed == []
        assert outcome.created == []
        assert outcome.skipped_optional == ['b']
        assert store.create_calls == []
        assert outcome.is_deployment_ready

    def test_created_secret_recorded_with_identifier(self):
        catalog = (SecretDescriptor(name='x', description='X', reference_key='X_KEY'),)

        class ArnStore(InMemoryStore):
            def create(self, name, value, description):
                super().create(name, value, description)
                return 'arn:1'

        store = ArnStore()
        outcome = run(catalog, store, ScriptedIO(values={'x': 'v1'}))

        assert outcome.created == [CreatedSecret(name='x', identifier='arn:1', reference_key='X_KEY')]
        assert store.secrets['x'] == 'v1'
        assert outcome.reference_listing() == ['"X_KEY": "arn:1",']

    def test_invalid_value_is_not_fatal(self):
        catalog = (SecretDescriptor(name='y', description='Y', reference_key='Y'),)
        store = InMemoryStore(create_errors={'y': InvalidValue('value rejected', code='InvalidParameterException')})
        io = ScriptedIO(values={'y': 'v1'})

        outcome = run(catalog, store, io)

        assert outcome.failed_names == ['y']
        assert outcome.skipped_or_failed[0].reason == 'value rejected'
        assert not outcome.skipped_or_failed[0].required_missing
        assert outcome.needs_rerun
        assert '   - y (value rejected)' in io.lines
        assert '   Run this script again to create the missing secrets.' in io.lines

    def test_required_value_missing(self, small_catalog):
        store = InMemoryStore()
        io = ScriptedIO(values={'beta': 'b-value'})

        outcome = run(small_catalog, store, io)

        assert outcome.skipped_or_failed == [
            FailedSecret('alpha', 'required value not provided', required_missing=True)
        ]
        assert outcome.created_names == ['beta']
        assert outcome.skipped_optional == ['gamma']
        assert store.create_calls == ['beta']
        assert '   ⚠️  This secret is required but was skipped.' in io.lines

    def test_whitespace_value_counts_as_empty(self, small_catalog):
        store = InMemoryStore()

        outcome = run(small_catalog, store, ScriptedIO(values={'alpha': '   ', 'beta': 'b'}))

        assert 'alpha' in outcome.failed_names
        assert 'alpha' not in store.create_calls

    def test_value_is_stripped_before_create(self, small_catalog):
        store = InMemoryStore()

        run(small_catalog, store, ScriptedIO(values={'alpha': '  token  '}))

        assert store.secrets['alpha'] == 'token'

    def test_create_failure_does_not_block_later_secrets(self, small_catalog):
        store = InMemoryStore(create_errors={'alpha': StoreUnavailable('throttled')})
        io = ScriptedIO(values={'alpha': 'a', 'beta': 'b', 'gamma': 'c'})

        outcome = run(small_catalog, store, io)

        assert store.create_calls == ['alpha', 'beta', 'gamma']
        assert outcome.failed_names == ['alpha']
        assert outcome.created_names == ['beta', 'gamma']

    def test_existing_secret_not_prompted(self, small_catalog):
        io = ScriptedIO(values={'beta': 'b'})

        run(small_catalog, InMemoryStore(existing=['alpha']), io)

        assert not any('value for alpha ' in prompt for prompt in io.value_prompts)
        assert '   ℹ️  Secret already exists. Skipping...' in io.lines

    def test_example_shown_when_present(self, small_catalog):
        io = ScriptedIO()

        run(small_catalog, InMemoryStore(), io)

        assert '   Example/Help: a-123' in io.lines
        assert '   Description: Second secret' in io.lines


@pytest.mark.unit
class TestFatalErrors:
    """Test existence-check failures abort the run"""

    def test_permission_denied_on_exists_is_fatal(self, small_catalog):
        store = InMemoryStore(exists_errors={'beta': PermissionDenied('denied', code='AccessDeniedException')})
        io = ScriptedIO(values={'alpha': 'a', 'beta': 'b', 'gamma': 'c'})

        with pytest.raises(FatalStoreError) as exc_info:
            run(small_catalog, store, io)

        assert exc_info.value.secret_name == 'beta'
        assert isinstance(exc_info.value.cause, PermissionDenied)
        assert store.exists_calls == ['alpha', 'beta']
        assert store.create_calls == ['alpha']

    def test_unavailable_store_is_fatal(self, small_catalog):
        store = InMemoryStore(exists_errors={'alpha': StoreUnavailable('no route')})

        with pytest.raises(FatalStoreError) as exc_info:
            run(small_catalog, store, ScriptedIO())

        assert isinstance(exc_info.value.cause, StoreUnavailable)


@pytest.mark.unit
class TestIdempotentRerun:
    """Test re-running against the same store"""

    def test_second_run_makes_no_create_calls(self):
        store = InMemoryStore()
        values = {descriptor.name: f"value-{descriptor.name}" for descriptor in SECRET_CATALOG}

        first = run(SECRET_CATALOG, store, ScriptedIO(values=values))
        store.create_calls.clear()
        second = run(SECRET_CATALOG, store, ScriptedIO(values=values))

        assert len(first.created) == len(SECRET_CATALOG)
        assert store.create_calls == []
        assert second.created == []
        assert second.skipped_existing == [descriptor.name for descriptor in SECRET_CATALOG]
        assert second.is_deployment_ready

    def test_rerun_after_partial_failure_only_creates_unresolved(self, small_catalog):
        store = InMemoryStore(create_errors={'beta': StoreUnavailable('timeout')})
        values = {'alpha': 'a', 'beta': 'b', 'gamma': 'c'}
        run(small_catalog, store, ScriptedIO(values=values))

        store.create_errors.clear()
        store.create_calls.clear()
        outcome = run(small_catalog, store, ScriptedIO(values=values))

        assert store.create_calls == ['beta']
        assert outcome.created_names == ['beta']
        assert outcome.skipped_existing == ['alpha', 'gamma']


@pytest.mark.unit
class TestSummary:
    """Test end-of-run report"""

    def test_reference_listing_in_catalog_order(self):
        store = InMemoryStore()
        values = {descriptor.name: 'v' for descriptor in SECRET_CATALOG}
        io = ScriptedIO(values=values)

        outcome = run(SECRET_CATALOG, store, io)

        keys = [line.split('"')[1] for line in outcome.reference_listing()]
        assert keys == [descriptor.reference_key for descriptor in SECRET_CATALOG]
        start = io.lines.index('SECRET_ARNS = {')
        assert io.lines[start + 1].startswith('    "GITHUB_TOKEN": "arn:aws:secretsmanager:')

    def test_counts_reported(self, small_catalog):
        io = ScriptedIO(values={'beta': 'b'})

        run(small_catalog, InMemoryStore(), io)

        assert '   ✅ Created: 1 secret(s)' in io.lines
        assert '   ⏭️  Skipped (already exist): 0 secret(s)' in io.lines
        assert '   ❌ Failed/Missing: 1 secret(s)' in io.lines
        assert '   ⏭️  Skipped (optional, no value): 1 secret(s)' in io.lines

    def test_no_listing_when_nothing_created(self, small_catalog):
        io = ScriptedIO()

        run(small_catalog, InMemoryStore(existing=['alpha', 'beta', 'gamma']), io)

        assert 'SECRET_ARNS = {' not in io.lines
        assert '   2. ✅ All secrets are ready!' in io.lines

    def test_ready_guidance_differs_from_rerun_guidance(self, small_catalog):
        io = ScriptedIO()

        run(small_catalog, InMemoryStore(), io)

        assert '   2. ⚠️  Create missing secrets by running this script again' in io.lines
        assert '   2. ✅ All secrets are ready!' not in io.lines

    def test_outcome_counts_property(self):
        outcome = ProvisioningOutcome(
            created=[CreatedSecret('a', 'arn:a', 'A')],
            skipped_existing=['b'],
        )

        assert outcome.counts == {
            'created': 1,
            'skipped_existing': 1,
            'skipped_or_failed': 0,
            'skipped_optional': 0,
        }

    def test_optional_skip_does_not_block_readiness(self):
        catalog = (
            SecretDescriptor(name='a', description='A', reference_key='A', required=True),
            SecretDescriptor(name='b', description='B', reference_key='B', required=False),
        )
        io = ScriptedIO()

        outcome = run(catalog, InMemoryStore(existing=['a']), io)

        assert not outcome.needs_rerun
        assert '   2. ✅ All secrets are ready!' in io.lines
        assert '   2. ⚠️  Create missing secrets by running this script again' not in io.lines

    def test_finished_run_logs_created_and_missing(self, small_catalog, caplog):
        io = ScriptedIO(values={'beta': 'b', 'gamma': 'c'})

        with caplog.at_level(logging.INFO, logger='pantry_deploy.provisioner'):
            run(small_catalog, InMemoryStore(), io)

        assert 'Created secrets: beta, gamma' in caplog.text
        assert 'Secrets still missing: alpha' in caplog.text
