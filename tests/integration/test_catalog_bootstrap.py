"""Integration tests for seeding the process catalog from configuration."""

from mes_kernel.selectors.process_selector import ProcessSelector
from mes_services.catalog import seed_process_catalog


def test_bootstrap_creates_configured_catalog(session, mes_config, test_actor_id):
    result = seed_process_catalog(session, mes_config, test_actor_id)

    selector = ProcessSelector(session)
    assert result.created == len(mes_config.processes)
    assert [p.code for p in selector.list()] == [p.code for p in mes_config.processes]
    for definition in mes_config.processes:
        assert selector.short_code_for(definition.code) == mes_config.short_code_for(definition.code)


def test_bootstrap_twice_is_harmless(session, mes_config, test_actor_id, captured_logs):
    seed_process_catalog(session, mes_config, test_actor_id)
    result = seed_process_catalog(session, mes_config, test_actor_id)

    assert result.created == 0
    record = [r for r in captured_logs() if r["message"] == "process_catalog_bootstrapped"][-1]
    assert record["skipped_count"] == len(mes_config.processes)
    assert record["config_id"] == mes_config.config_id
