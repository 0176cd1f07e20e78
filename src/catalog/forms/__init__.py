"""
Form declarations and the request -> entity binding pipeline.

    payload.decode_payload   raw body -> dict
    binder.Binder            dict -> entity (+ warnings)
    errors.aggregate_violations  violations -> {field: [messages]}

Validation itself lives in `catalog.validators`.
"""
