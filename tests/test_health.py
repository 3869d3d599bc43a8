from phishshield.monitoring import HealthServer, format_metrics


def test_format_metrics_flattens_nested_numbers():
    text = format_metrics(
        {
            "status": "ok",
            "uptime_seconds": 12.5,
            "cache": {"entries": 3, "hits": 7},
            "alerts_fired": 1,
            "degraded": False,
        }
    )

    lines = text.strip().splitlines()
    assert "phishshield_uptime_seconds 12.5" in lines
    assert "phishshield_cache_entries 3" in lines
    assert "phishshield_cache_hits 7" in lines
    assert "phishshield_degraded 0" in lines
    assert not any("status" in line for line in lines)


def test_format_metrics_placeholder_when_nothing_numeric():
    assert format_metrics({"status": "ok"}) == 'phishshield_status{state="empty"} 1\n'


def test_snapshot_survives_failing_provider():
    def broken():
        raise RuntimeError("boom")

    server = HealthServer("127.0.0.1", 0, broken, enabled=False)

    assert server._snapshot() == {"status": "error", "message": "boom"}
