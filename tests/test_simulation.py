import pandas as pd
import pytest

from sir_grid import (
    BehaviorMix,
    ConfigurationError,
    DemographicsWriter,
    HISTORY_COLUMNS,
    SIRSimulation,
)
from sir_grid.simulation import SEED_FRACTION_STEP, SEED_START_FRACTION


class RecordingVisualizer:
    def __init__(self):
        self.days = []
        self.closed = False

    def update(self, day, grid):
        self.days.append(day)

    def close(self):
        self.closed = True


class FailingWriter:
    def __init__(self):
        self.closed = False

    def open(self, max_days, infection_rate, recovery_rate, size):
        return None

    def update(self, day, demographics, fractions):
        raise RuntimeError("disk full")

    def close(self):
        self.closed = True


class TestStopConditions:

    def test_runs_until_day_limit(self):
        sim = SIRSimulation(
            4, infection_rate=0.5, recovery_rate=0.0, max_days=5,
            initial_infected_fraction=1.0, random_seed=0,
        )
        history = sim.run()
        # Days 0..max_days are simulated while anyone is infectious
        assert len(history) == 6
        assert list(history["day"]) == list(range(6))
        assert sim.day == 6
        assert not sim.should_continue()

    def test_zero_day_limit_simulates_one_day(self):
        sim = SIRSimulation(
            3, 0.5, 0.0, max_days=0, initial_infected_fraction=1.0, random_seed=0
        )
        assert len(sim.run()) == 1

    def test_stops_when_epidemic_dies_out(self):
        sim = SIRSimulation(
            5, infection_rate=0.0, recovery_rate=1.0, max_days=50,
            initial_infected_fraction=0.5, random_seed=3,
        )
        history = sim.run()
        assert len(history) == 1
        assert history.iloc[-1]["infectious"] == 0
        assert sim.grid.infectious_count() == 0

    def test_no_infection_means_no_days(self):
        sim = SIRSimulation(
            4, 0.5, 0.1, max_days=10, initial_infected_fraction=0.0, random_seed=0
        )
        history = sim.run()
        assert history.empty
        assert list(history.columns) == HISTORY_COLUMNS


class TestSeeding:

    def test_seeding_guarantees_an_outbreak(self):
        sim = SIRSimulation(3, 0.2, 0.1, random_seed=8)
        grid = sim.initialize()
        assert grid.infectious_count() >= 1

        steps = (sim.seeded_fraction - SEED_START_FRACTION) / SEED_FRACTION_STEP
        assert steps == pytest.approx(round(steps))
        assert SEED_START_FRACTION <= sim.seeded_fraction <= 1.0

    def test_fixed_fraction_is_used_as_is(self):
        sim = SIRSimulation(3, 0.2, 0.1, initial_infected_fraction=0.3, random_seed=8)
        sim.initialize()
        assert sim.seeded_fraction == 0.3

    def test_oversubscribed_mix_warns(self, caplog):
        sim = SIRSimulation(
            3, 0.2, 0.1, mix=BehaviorMix(masked=0.8, introvert=0.5), random_seed=1
        )
        with caplog.at_level("WARNING"):
            sim.initialize()
        assert "No cells will be" in caplog.text

    def test_exactly_full_mix_warning_wording(self, caplog):
        sim = SIRSimulation(
            3, 0.2, 0.1, mix=BehaviorMix(masked=0.5, introvert=0.5), random_seed=1
        )
        with caplog.at_level("WARNING"):
            sim.initialize()
        assert "fill 100% or more" in caplog.text
        assert "exceed" not in caplog.text
        assert "No cells will be: baseline" in caplog.text


class TestHistory:

    def test_columns_and_totals(self):
        sim = SIRSimulation(
            12, 0.3, 0.1, max_days=20,
            mix=BehaviorMix(contact_tracing=0.2, masked=0.2),
            initial_infected_fraction=0.05, random_seed=21,
        )
        history = sim.run()
        assert list(history.columns) == HISTORY_COLUMNS
        totals = history[["susceptible", "infectious", "recovered"]].sum(axis=1)
        assert (totals == 144).all()
        fractions = history[["susceptible_frac", "infectious_frac", "recovered_frac"]]
        assert fractions.sum(axis=1).to_numpy() == pytest.approx(1.0)
        # Recovered never decreases
        assert history["recovered"].is_monotonic_increasing

    def test_same_seed_same_history(self):
        def run():
            return SIRSimulation(
                10, 0.3, 0.1, max_days=15, mix=BehaviorMix(quarantine=0.3),
                random_seed=99, n_partitions=3, n_workers=2,
            ).run()

        pd.testing.assert_frame_equal(run(), run())

    def test_step_initializes_lazily(self):
        sim = SIRSimulation(4, 0.2, 0.1, initial_infected_fraction=0.5, random_seed=2)
        demographics = sim.step()
        assert sim.grid.populated
        assert demographics.total == 16
        assert sim.day == 1
        assert len(sim.history) == 1


class TestCollaborators:

    def test_writer_receives_every_day(self, tmp_path):
        writer = DemographicsWriter(output_dir=tmp_path)
        sim = SIRSimulation(
            5, infection_rate=0.0, recovery_rate=0.0, max_days=10,
            initial_infected_fraction=1.0, random_seed=0, writer=writer,
        )
        history = sim.run()

        path = tmp_path / "SIR_0.0_0.0_10_5.csv"
        assert writer.path == path
        written = pd.read_csv(path)
        assert len(written) == len(history) == 11
        assert (written["infectious_pct"] == 100.0).all()

    def test_step_opens_writer(self, tmp_path):
        writer = DemographicsWriter(output_dir=tmp_path)
        sim = SIRSimulation(
            3, 0.5, 0.1, initial_infected_fraction=1.0, random_seed=0, writer=writer,
        )
        sim.step()
        sim.step()
        assert writer.is_open

        path = writer.close()
        assert path == tmp_path / "SIR_0.5_0.1_90_3.csv"
        assert list(pd.read_csv(path)["day"]) == [0, 1]

    def test_run_after_steps_starts_fresh_file(self, tmp_path):
        writer = DemographicsWriter(output_dir=tmp_path)
        sim = SIRSimulation(
            3, 0.5, 0.0, max_days=2, initial_infected_fraction=1.0,
            random_seed=0, writer=writer,
        )
        sim.step()
        history = sim.run()
        assert len(pd.read_csv(writer.path)) == len(history) == 3

    def test_visualizer_sees_each_day_and_is_closed(self):
        visualizer = RecordingVisualizer()
        sim = SIRSimulation(
            3, 0.5, 0.0, max_days=3, initial_infected_fraction=1.0,
            random_seed=0, visualizer=visualizer,
        )
        sim.run()
        assert visualizer.days == [0, 1, 2, 3]
        assert visualizer.closed

    def test_collaborators_closed_on_failure(self):
        writer = FailingWriter()
        visualizer = RecordingVisualizer()
        sim = SIRSimulation(
            3, 0.5, 0.0, max_days=3, initial_infected_fraction=1.0,
            random_seed=0, writer=writer, visualizer=visualizer,
        )
        with pytest.raises(RuntimeError):
            sim.run()
        assert writer.closed
        assert visualizer.closed


class TestValidation:

    @pytest.mark.parametrize("max_days", [-1, 2.5, True])
    def test_bad_max_days(self, max_days):
        with pytest.raises(ConfigurationError):
            SIRSimulation(3, 0.2, 0.1, max_days=max_days)

    def test_bad_rates(self):
        with pytest.raises(ConfigurationError):
            SIRSimulation(3, 1.2, 0.1)
        with pytest.raises(ConfigurationError):
            SIRSimulation(3, 0.2, 0.1, initial_infected_fraction=-0.5)
