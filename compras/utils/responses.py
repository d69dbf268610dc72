"""JSON response helpers shared by the API blueprints."""
from flask import jsonify, get_flashed_messages


def json_ok(data=None, status: int = 200, **extra):
    """
    Success response. Errors that services flashed along the way (a failed
    follow-up step after the main write) are returned under `warnings`.
    """
    body = {'status': 'success'}
    if data is not None:
        body['data'] = data
    body.update(extra)
    warnings = get_flashed_messages(category_filter=['danger', 'warning'])
    if warnings:
        body['warnings'] = warnings
    return jsonify(body), status


def json_failure(default_message: str, status: int = 500):
    """
    Error response for a service call that returned its failure sentinel.

    Services report database errors through flash(); the last one is used
    as the message when present.
    """
    messages = get_flashed_messages(category_filter=['danger'])
    message = messages[-1] if messages else default_message
    return jsonify({'status': 'error', 'message': message}), status
