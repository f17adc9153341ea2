import pandas as pd
import pytest

from sir_grid import SIRSimulation, SimulationError, normalize_history, summarize_history


@pytest.fixture
def history():
    return pd.DataFrame({
        "day": [0, 1, 2, 3],
        "susceptible": [90, 70, 60, 58],
        "infectious": [10, 20, 12, 0],
        "recovered": [0, 10, 28, 42],
        "susceptible_frac": [0.9, 0.7, 0.6, 0.58],
        "infectious_frac": [0.1, 0.2, 0.12, 0.0],
        "recovered_frac": [0.0, 0.1, 0.28, 0.42],
    })


def test_summarize_history(history):
    summary = summarize_history(history)
    assert summary["days_simulated"] == 4
    assert summary["peak_infectious"] == 20
    assert summary["peak_day"] == 1
    assert summary["peak_infectious_frac"] == pytest.approx(0.2)
    assert summary["final_recovered"] == pytest.approx(0.42)
    assert summary["attack_rate"] == pytest.approx(0.42)
    assert summary["extinct"] is True


def test_empty_history():
    with pytest.raises(SimulationError):
        summarize_history(pd.DataFrame())


def test_normalize_percentages(history):
    csv_frame = history.drop(
        columns=["susceptible_frac", "infectious_frac", "recovered_frac"]
    )
    csv_frame["infectious_pct"] = [10.0, 20.0, 12.0, 0.0]
    normalized = normalize_history(csv_frame)

    assert normalized["infectious_frac"].tolist() == pytest.approx([0.1, 0.2, 0.12, 0.0])
    # Without a percentage column the fraction comes from the counts
    assert normalized["recovered_frac"].tolist() == pytest.approx([0.0, 0.1, 0.28, 0.42])
    assert "infectious_frac" not in csv_frame.columns


@pytest.mark.integration
def test_summary_of_real_run():
    sim = SIRSimulation(
        30, infection_rate=0.3, recovery_rate=0.2, max_days=200,
        initial_infected_fraction=0.02, random_seed=17,
    )
    summary = summarize_history(sim.run())
    assert 0.0 <= summary["attack_rate"] <= 1.0
    assert summary["peak_infectious"] >= 1
    assert summary["days_simulated"] <= 201
