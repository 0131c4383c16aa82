from flask import current_app, jsonify, request

from patternpro.errors import InvalidArgument
from patternpro.game import game
from patternpro.patterns import (
    PatternFamily, families, build_pattern, generate_pattern, generate_patterns,
)
from patternpro.training.data import INITIAL_LEARNING_RATE, INITIAL_ERROR_RATE
from patternpro.training import (
    RoundRecord, TrainingState, tick, apply_boost, simulate, performance_message,
)

# ─────────────────────────────────────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────────────────────────────────────


def _int_arg(value, name):
    if isinstance(value, bool):
        raise InvalidArgument(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{name} must be an integer") from None


def _batch_arg(value, name):
    number = _int_arg(value, name)
    limit  = current_app.config["MAX_BATCH"]
    if number > limit:
        raise InvalidArgument(f"{name} must be at most {limit}")
    return number


def _state_from_json(data):
    return TrainingState(
        learning_rate=data.get("learning_rate", INITIAL_LEARNING_RATE),
        error_rate=data.get("error_rate", INITIAL_ERROR_RATE),
    )


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidArgument("Request body must be a JSON object")
    return data


# ─────────────────────────────────────────────────────────────────────────────
# ROUTES
# ─────────────────────────────────────────────────────────────────────────────


@game.route('/api/families')
def list_families():
    return jsonify({"families": [f.value for f in families()]})


@game.route('/api/pattern')
def pattern():
    """One revealed puzzle, optionally from ?family=<name>."""
    name = request.args.get('family')
    if name is None:
        puzzle = generate_pattern()
    else:
        try:
            family = PatternFamily(name)
        except ValueError:
            raise InvalidArgument(f"Unknown pattern family: {name}") from None
        puzzle = build_pattern(family)
    return jsonify(puzzle.as_payload(reveal=True))


@game.route('/api/patterns')
def patterns():
    count = _batch_arg(request.args.get('count', 10), "count")
    return jsonify({"patterns": [p.as_payload(reveal=True) for p in generate_patterns(count)]})


@game.route('/api/tick', methods=['POST'])
def tick_state():
    state = tick(_state_from_json(_json_body()))
    return jsonify({**state.as_payload(), "saturated": state.is_saturated})


@game.route('/api/boost', methods=['POST'])
def boost_state():
    state = apply_boost(_state_from_json(_json_body()))
    return jsonify({**state.as_payload(), "saturated": state.is_saturated})


@game.route('/api/simulate', methods=['POST'])
def simulate_batch():
    """
    Run the AI batch-solve for a player who got `correct` of `posed` puzzles.
    Body: {correct, posed, learning_rate, error_rate, batch_size}
    """
    data       = _json_body()
    posed      = _batch_arg(data.get("posed", 0), "posed")
    correct    = _int_arg(data.get("correct", 0), "correct")
    batch_size = _batch_arg(data.get("batch_size", 25), "batch_size")
    if posed < 0 or not 0 <= correct <= posed:
        raise InvalidArgument("correct must lie between 0 and posed")

    state  = _state_from_json(data)
    record = RoundRecord()
    for number, puzzle in enumerate(generate_patterns(posed) if posed else [], start=1):
        record.pose(puzzle)
        record.record_answer(puzzle.answer if number <= correct else None)
    result = simulate(record.finalize(), state, batch_size)

    user_score = record.user_accuracy * 100
    return jsonify({
        **result.as_payload(),
        "user_score": user_score,
        "ai_score":   result.accuracy * 100,
        "message":    performance_message(user_score),
    })
