import io

import pytest

from ledger_pulse.config import ReporterConfig
from ledger_pulse.messaging.bus import bus as messaging_bus
from ledger_pulse.messaging.renderer import CliRenderer
from ledger_pulse.runtime.bus import MessageBus
from ledger_pulse.testing import SpySubscriber

LEDGER_NODE_ID = "did:v1:uuid:0f1a2b3c-4d5e-6f70-8192-a3b4c5d6e7f8"
NODE_TOKEN = "0f1a2b3c4d5e6f708192a3b4c5d6e7f8"


@pytest.fixture
def bus_and_spy():
    """Provides a MessageBus instance and an attached SpySubscriber."""
    bus = MessageBus()
    spy = SpySubscriber(bus)
    return bus, spy


@pytest.fixture
def captured_messages():
    """Renders messaging-bus output into a string buffer for the test's duration."""
    output = io.StringIO()
    messaging_bus.set_renderer(
        CliRenderer(store=messaging_bus.store, stream=output, min_level="DEBUG")
    )
    yield output
    messaging_bus.set_renderer(None)


@pytest.fixture
def reporter_config():
    return ReporterConfig(
        base_uri="https://node-1.example.com:18443",
        domain="node-1.internal",
        port=18443,
        primary_base_url="https://primary.example.com:18443/ledger-test",
        collector_url="https://primary.example.com:18443/ledger-test",
        ledger_node_id=LEDGER_NODE_ID,
        label="node-1",
        public_hostname="node-1.example.com",
    )
