"""Route generation cadence, ceiling and expiry."""

from narrative_core import DilationState, RouteBoard, make_rng
from narrative_engine import RouteGenerator
from narrative_engine.routes import route_label

COMPARTMENTS = ("1A", "1B", "2A")


def _clock(objective: float = 480.0, multiplier: float = 1.0) -> DilationState:
    return DilationState(
        objective_seconds_left=objective,
        multiplier=multiplier,
        subjective_seconds_left=objective * multiplier,
    )


def test_route_labels():
    assert route_label(1) == "B1"
    assert route_label(25) == "Z25"
    assert route_label(26) == "A26"


def test_interval_shrinks_with_dilation_down_to_floor():
    gen = RouteGenerator()
    assert gen.interval(1.0) == 38
    assert gen.interval(10.0) == 20
    assert gen.interval(26.0) == 8
    assert gen.is_due(38, 1.0)
    assert not gen.is_due(37, 1.0)


def test_create_appends_and_advances_sequence():
    gen = RouteGenerator()
    board = gen.create(RouteBoard(), _clock(), COMPARTMENTS, 0.0, make_rng(4))
    route = board.routes[0]
    assert board.next_route_id == 2
    assert route.id == "B1"
    assert 2 <= len(route.path) <= 4
    assert 55 <= route.viability <= 95
    assert route.expires_at_objective < 480.0


def test_fallback_compartment_when_nothing_open():
    gen = RouteGenerator()
    board = gen.create(RouteBoard(), _clock(), (), 0.0, make_rng(4))
    assert board.routes[0].through == "2A"


def test_seed_respects_ceiling():
    gen = RouteGenerator(ceiling=3)
    board = gen.seed(RouteBoard(), _clock(), COMPARTMENTS, 0.0, make_rng(1), count=10)
    assert len(board.routes) == 3
    assert not gen.has_capacity(board)

    same = gen.maybe_generate(board, _clock(), COMPARTMENTS, 38, 38.0, make_rng(1))
    assert same is board


def test_ceiling_counts_live_routes_only():
    gen = RouteGenerator(ceiling=3)
    board = gen.seed(RouteBoard(), _clock(), COMPARTMENTS, 0.0, make_rng(1), count=3)
    board = gen.expire(board, _clock(objective=0.0))
    assert gen.has_capacity(board)
    board = gen.maybe_generate(board, _clock(objective=0.0), COMPARTMENTS, 38, 38.0, make_rng(1))
    assert len(board.routes) == 4


def test_route_generated_this_step_is_not_expired_this_step():
    gen = RouteGenerator()
    board = gen.step(RouteBoard(), _clock(), COMPARTMENTS, 38, 38.0, make_rng(2))
    assert len(board.routes) == 1
    assert not board.routes[0].deprecated


def test_expiry_deprecates_and_counts_once():
    gen = RouteGenerator()
    board = gen.seed(RouteBoard(), _clock(), COMPARTMENTS, 0.0, make_rng(5), count=4)

    expired = gen.expire(board, _clock(objective=0.0))
    assert expired.deprecated_count == 4
    assert all(r.deprecated for r in expired.routes)
    assert len(expired.routes) == 4

    again = gen.expire(expired, _clock(objective=0.0))
    assert again is expired


def test_off_cadence_tick_generates_nothing():
    gen = RouteGenerator()
    board = RouteBoard()
    assert gen.maybe_generate(board, _clock(), COMPARTMENTS, 5, 5.0, make_rng(0)) is board


def test_generation_is_deterministic_for_a_seed():
    gen = RouteGenerator()
    a = gen.seed(RouteBoard(), _clock(), COMPARTMENTS, 0.0, make_rng(11), count=5)
    b = gen.seed(RouteBoard(), _clock(), COMPARTMENTS, 0.0, make_rng(11), count=5)
    assert a == b
