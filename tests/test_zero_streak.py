"""Tests del detector de rachas de ceros.

Tests obligatorios:
1. Disparo al tercer cero consecutivo
2. Reset con valor distinto de cero
3. Deduplicación mientras la falla siga activa
4. Errores del ledger no se propagan
"""

import threading

import pytest

from sensor_ingest.core.detection import StreakState, ZeroStreakDetector
from sensor_ingest.core.domain import ChannelFamily, Reading

from .conftest import BASE_TIME


def _reading(**channels):
    return Reading(
        timestamp=BASE_TIME,
        channels={ChannelFamily(name): values for name, values in channels.items()},
    )


# =============================================================================
# CONTADOR
# =============================================================================

class TestStreakCounter:

    def test_trips_on_third_zero(self, mock_ledger):
        detector = ZeroStreakDetector(mock_ledger)

        states = [detector.observe(ChannelFamily.LIGHT, 0, 0.0) for _ in range(3)]

        assert states == [StreakState.NORMAL, StreakState.NORMAL, StreakState.TRIPPED]
        assert detector.get_count(ChannelFamily.LIGHT, 0) == 0

    def test_non_zero_resets_streak(self, mock_ledger):
        detector = ZeroStreakDetector(mock_ledger)

        for value in (0, 0, 5, 0, 0):
            assert detector.observe(ChannelFamily.GAS, 1, value) is StreakState.NORMAL

        assert detector.get_count(ChannelFamily.GAS, 1) == 2
        assert detector.observe(ChannelFamily.GAS, 1, 0) is StreakState.TRIPPED

    def test_keys_are_independent(self, mock_ledger):
        detector = ZeroStreakDetector(mock_ledger)

        detector.observe(ChannelFamily.LIGHT, 0, 0)
        detector.observe(ChannelFamily.LIGHT, 0, 0)
        detector.observe(ChannelFamily.LIGHT, 1, 0)

        assert detector.get_count(ChannelFamily.LIGHT, 0) == 2
        assert detector.get_count(ChannelFamily.LIGHT, 1) == 1
        assert detector.get_count(ChannelFamily.GAS, 0) == 0

    def test_six_zeros_trip_twice(self, mock_ledger):
        detector = ZeroStreakDetector(mock_ledger)

        states = [detector.observe(ChannelFamily.CURRENT, 0, 0) for _ in range(6)]

        assert states.count(StreakState.TRIPPED) == 2

    def test_reset_clears_counters(self, mock_ledger):
        detector = ZeroStreakDetector(mock_ledger)
        detector.observe(ChannelFamily.LIGHT, 0, 0)

        detector.reset()

        assert detector.get_count(ChannelFamily.LIGHT, 0) == 0

    def test_concurrent_observations_do_not_lose_updates(self, mock_ledger):
        detector = ZeroStreakDetector(mock_ledger, threshold=10_000)

        def worker():
            for _ in range(500):
                detector.observe(ChannelFamily.HUMIDITY, 0, 0)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert detector.get_count(ChannelFamily.HUMIDITY, 0) == 2000


# =============================================================================
# INSPECCIÓN DE LECTURAS
# =============================================================================

class TestInspect:

    def test_trip_opens_failure_with_label_and_message(self, mock_ledger):
        detector = ZeroStreakDetector(mock_ledger)

        for _ in range(2):
            assert detector.inspect(_reading(light=[0, 300])) == []
        outcomes = detector.inspect(_reading(light=[0, 300]))

        assert len(outcomes) == 1
        mock_ledger.open_failure.assert_called_once_with(
            "light",
            "sensor1",
            "Sensor light (sensor1) reported zero value 3 times in a row.",
        )
        assert outcomes[0].failure is not None

    def test_absent_sample_is_not_zero(self, mock_ledger):
        detector = ZeroStreakDetector(mock_ledger)

        detector.inspect(_reading(gas=[0]))
        detector.inspect(_reading(gas=[]))
        detector.inspect(_reading(gas=[0]))

        assert detector.get_count(ChannelFamily.GAS, 0) == 2
        mock_ledger.open_failure.assert_not_called()

    def test_ledger_error_is_contained(self, mock_ledger):
        mock_ledger.open_failure.side_effect = RuntimeError("db down")
        detector = ZeroStreakDetector(mock_ledger)

        for _ in range(2):
            detector.inspect(_reading(current=[0]))
        outcomes = detector.inspect(_reading(current=[0]))

        assert outcomes[0].error is not None
        assert outcomes[0].error.sensor_type == "current"
        assert detector.stats["ledger_errors"] == 1
        # El contador ya se reinició
        assert detector.get_count(ChannelFamily.CURRENT, 0) == 0

    def test_suppressed_when_failure_already_open(self, mock_ledger):
        mock_ledger.open_failure.return_value = None
        detector = ZeroStreakDetector(mock_ledger)

        for _ in range(3):
            outcomes = detector.inspect(_reading(light=[0]))

        assert outcomes[0].suppressed is True


class TestDetectorWithLedger:
    """Detector contra el ledger real (SQLite en memoria)."""

    def test_dedup_while_unresolved(self, detector, ledger):
        for _ in range(6):
            detector.inspect(_reading(light=[0]))

        active = ledger.list_active()
        assert len(active) == 1
        assert (active[0].sensor_type, active[0].sensor_index) == ("light", "sensor1")

    def test_new_failure_after_resolve(self, detector, ledger):
        for _ in range(3):
            detector.inspect(_reading(gas=[5, 0]))
        first = ledger.list_active()[0]
        ledger.resolve(first.id)

        for _ in range(3):
            detector.inspect(_reading(gas=[5, 0]))

        active = ledger.list_active()
        assert len(active) == 1
        assert active[0].id != first.id
        assert len(ledger.list_all()) == 2

    @pytest.mark.parametrize("threshold", [1, 2, 5])
    def test_custom_threshold(self, ledger, threshold):
        detector = ZeroStreakDetector(ledger, threshold=threshold)

        for _ in range(threshold):
            detector.inspect(_reading(humidity=[0]))

        assert len(ledger.list_active()) == 1
