from flask import request


def form_or_json():
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form
