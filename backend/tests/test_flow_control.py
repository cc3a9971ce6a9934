import logging

import pytest

from flow_control import FlowControlHub, FlowDestination, SinkRecord, create_flow_config


def _record(value=5, node_id="out"):
    return SinkRecord(node_id=node_id, label="Sum", value=value, sequence_num=1)


@pytest.mark.asyncio
async def test_memory_destination_keeps_emission_order(memory_sink):
    for value in (1, 2, 3):
        assert await memory_sink.emit(_record(value))

    assert [r.value for r in memory_sink.records] == [1, 2, 3]
    assert memory_sink.get_stats()["memory_writes"] == 3
    assert memory_sink.get_stats()["total_routed"] == 3


@pytest.mark.asyncio
async def test_log_destination_writes_one_line(caplog):
    hub = FlowControlHub()
    assert hub.config.destination == FlowDestination.LOG

    with caplog.at_level(logging.INFO, logger="flow_control"):
        await hub.emit(_record({"balance": 1.5}))

    assert 'Sum: {"balance":1.5}' in caplog.text
    assert hub.records == []


@pytest.mark.asyncio
async def test_sync_and_async_callbacks():
    seen = []

    async def async_callback(record):
        seen.append(("async", record.value))

    sync_hub = FlowControlHub(create_flow_config("callback", callback=lambda r: seen.append(("sync", r.value))))
    async_hub = FlowControlHub(create_flow_config("callback", callback=async_callback))

    assert await sync_hub.emit(_record(1))
    assert await async_hub.emit(_record(2))
    assert seen == [("sync", 1), ("async", 2)]


@pytest.mark.asyncio
async def test_callback_failures_are_counted_not_raised():
    def broken(record):
        raise RuntimeError("sink down")

    hub = FlowControlHub(create_flow_config("callback", callback=broken))
    assert await hub.emit(_record()) is False
    assert hub.get_stats()["errors"] == 1

    missing = FlowControlHub(create_flow_config("callback"))
    assert await missing.emit(_record()) is False


@pytest.mark.asyncio
async def test_broadcast_logs_keeps_and_calls_back():
    seen = []
    hub = FlowControlHub(create_flow_config("broadcast", callback=seen.append, run="r1"))
    await hub.emit(_record(9))

    assert [r.value for r in hub.records] == [9]
    assert [r.value for r in seen] == [9]
    assert hub.config.metadata == {"run": "r1"}
    stats = hub.get_stats()
    assert stats["log_writes"] == 1 and stats["callback_invocations"] == 1

    hub.reset()
    assert hub.records == []
    assert hub.get_stats()["total_routed"] == 0


def test_record_to_dict():
    assert _record().to_dict() == {
        "node_id": "out", "label": "Sum", "value": 5, "sequence_num": 1, "metadata": {},
    }
