"""Tests for the generational loop."""

import random

import pytest

from ttp_ga.evaluation import ThiefEvaluator
from ttp_ga.evolutionary import EvolutionConfig, EvolutionEngine, Phase
from ttp_ga.exceptions import ConfigurationError, EvolutionError
from ttp_ga.ranking import pareto_relation

from .conftest import FlakyEvaluator, NeverFeasible, is_route, make_problem


def genotypes(population):
    return [c.genotype for c in population]


class TestEvolutionConfig:
    def test_defaults(self):
        cfg = EvolutionConfig()
        assert cfg.epochs == 1000
        assert cfg.tournament_size == 8
        assert cfg.mutation_rate == 0.1

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"population_size": 0},
            {"population_size": 4, "tournament_size": 5},
            {"tournament_size": 0},
            {"mutation_rate": -0.1},
            {"mutation_rate": 1.1},
            {"epochs": -1},
            {"workers": 0},
            {"max_attempts": 0},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            EvolutionConfig(**kwargs)


class TestInitialization:
    def test_population_is_evaluated_and_unranked(self, medium_evaluator):
        cfg = EvolutionConfig(population_size=15, tournament_size=3)
        population = EvolutionEngine(cfg, medium_evaluator).initialize()
        assert len(population) == 15
        for c in population:
            assert is_route(c.route, medium_evaluator.num_cities)
            assert len(c.packing_plan) == medium_evaluator.num_items
            assert c.objectives
            assert c.rank == -1

    def test_infeasible_draws_are_resampled(self, medium_evaluator):
        flaky = FlakyEvaluator(medium_evaluator, reject_every=3)
        cfg = EvolutionConfig(population_size=10, tournament_size=2)
        population = EvolutionEngine(cfg, flaky).initialize()
        assert len(population) == 10
        assert flaky.rejected > 0
        assert all(c is not None for c in population)

    def test_gives_up_when_nothing_is_feasible(self):
        cfg = EvolutionConfig(population_size=4, tournament_size=2, max_attempts=25)
        with pytest.raises(EvolutionError):
            EvolutionEngine(cfg, NeverFeasible(5, 3)).initialize()


class TestBreeding:
    def test_pool_has_no_clones(self, medium_evaluator):
        cfg = EvolutionConfig(population_size=30, tournament_size=4, mutation_rate=0.05, random_seed=5)
        engine = EvolutionEngine(cfg, medium_evaluator)
        engine.initialize()
        engine.rank()
        pool = engine.breed()
        assert len(pool) == 30
        assert len(set(genotypes(pool))) == 30

    def test_clone_suppression_covers_tiny_search_space(self):
        # 3 cities and 1 item: exactly 2 routes x 2 plans = 4 genotypes.
        problem = make_problem([(0, 0), (5, 0), (0, 5)], [(10, 1, 1)], capacity=5)
        cfg = EvolutionConfig(population_size=4, tournament_size=2, mutation_rate=0.5, random_seed=9)
        engine = EvolutionEngine(cfg, ThiefEvaluator(problem))
        engine.initialize()
        engine.rank()
        pool = engine.breed()
        assert set(genotypes(pool)) == {
            ((0, 1, 2), (False,)),
            ((0, 1, 2), (True,)),
            ((0, 2, 1), (False,)),
            ((0, 2, 1), (True,)),
        }

    def test_impossible_pool_raises(self):
        # Only 2 distinct genotypes exist but 3 unique offspring are required.
        problem = make_problem([(0, 0), (5, 0)], [(10, 1, 1)], capacity=5)
        cfg = EvolutionConfig(population_size=3, tournament_size=2, mutation_rate=0.5, max_attempts=50)
        engine = EvolutionEngine(cfg, ThiefEvaluator(problem))
        engine.initialize()
        engine.rank()
        with pytest.raises(EvolutionError):
            engine.breed()

    def test_offspring_survive_infeasible_children(self, medium_evaluator):
        flaky = FlakyEvaluator(medium_evaluator, reject_every=4)
        cfg = EvolutionConfig(population_size=12, tournament_size=3)
        engine = EvolutionEngine(cfg, flaky)
        engine.initialize()
        engine.rank()
        pool = engine.breed()
        assert len(pool) == 12
        assert all(is_route(c.route, medium_evaluator.num_cities) for c in pool)

    def test_parallel_breeding_matches_sequential(self, medium_evaluator):
        results = []
        for workers in (1, 3):
            cfg = EvolutionConfig(population_size=16, epochs=3, tournament_size=4, workers=workers, random_seed=11)
            engine = EvolutionEngine(cfg, medium_evaluator)
            engine.run()
            results.append(genotypes(engine.population))
        assert results[0] == results[1]


class TestRun:
    def test_end_to_end_small_instance(self, small_evaluator):
        cfg = EvolutionConfig(population_size=6, epochs=1, tournament_size=2)
        engine = EvolutionEngine(cfg, small_evaluator)
        front = engine.run()
        assert front
        assert engine.epoch == 1
        assert engine.phase is Phase.TERMINATED
        for c in front:
            assert sorted(c.route) == [0, 1, 2, 3]
            assert c.route[0] == 0
            assert len(c.packing_plan) == 2
            assert c.rank == 0
        for p in front:
            for q in front:
                assert pareto_relation(p.objectives, q.objectives) != 1

    def test_population_ranked_after_every_epoch(self, medium_evaluator):
        cfg = EvolutionConfig(population_size=20, epochs=4, tournament_size=4)
        engine = EvolutionEngine(cfg, medium_evaluator)
        engine.run()
        assert len(engine.population) == 20
        assert all(c.rank >= 0 for c in engine.population)
        assert sum(len(f) for f in engine.fronts) == 20
        for p in engine.population:
            for q in engine.population:
                if pareto_relation(p.objectives, q.objectives) == 1:
                    assert p.rank < q.rank

    def test_seeded_runs_are_reproducible(self, medium_evaluator):
        cfg = EvolutionConfig(population_size=12, epochs=3, tournament_size=3, random_seed=1)
        a = EvolutionEngine(cfg, medium_evaluator).run()
        b = EvolutionEngine(cfg, medium_evaluator, rng=random.Random(1)).run()
        assert genotypes(a) == genotypes(b)

    def test_zero_epochs_returns_initial_front(self, small_evaluator):
        cfg = EvolutionConfig(population_size=6, epochs=0, tournament_size=2)
        engine = EvolutionEngine(cfg, small_evaluator)
        front = engine.run()
        assert engine.epoch == 0
        assert front == [c for c in engine.population if c.rank == 0]

    def test_should_stop_is_checked_between_epochs(self, medium_evaluator):
        seen = []

        def stop(epoch, population):
            seen.append((epoch, len(population)))
            return epoch >= 2

        cfg = EvolutionConfig(population_size=10, epochs=50, tournament_size=2)
        engine = EvolutionEngine(cfg, medium_evaluator, should_stop=stop)
        front = engine.run()
        assert engine.epoch == 2
        assert seen == [(0, 10), (1, 10), (2, 10)]
        assert all(c.rank == 0 for c in front)

    def test_run_can_continue(self, small_evaluator):
        cfg = EvolutionConfig(population_size=6, epochs=1, tournament_size=2)
        engine = EvolutionEngine(cfg, small_evaluator)
        engine.run()
        engine.run(epochs=2)
        assert engine.epoch == 3
