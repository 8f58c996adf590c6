import re
from flask import request

# Six hex bytes joined by '-', e.g. a4-cf-12-0b-9e-ff
DEVICE_ID_RE = re.compile(r'^([a-fA-F0-9]{2}-){5}[a-fA-F0-9]{2}$')

OPEN_PATHS = {'/health'}


def is_valid_device_id(device_id) -> bool:
    return bool(device_id) and bool(DEVICE_ID_RE.match(device_id))


def authenticate():
    """before_request hook: every route but the healthcheck needs a device id."""
    if request.path in OPEN_PATHS:
        return None

    if request.method == 'GET':
        device_id = request.args.get('device_id')
    elif request.method == 'POST':
        device_id = (request.get_json(silent=True) or {}).get('device_id')
    else:
        return "Unsupported request type", 405

    if not device_id:
        return "'device_id' field not found", 403
    if not is_valid_device_id(device_id):
        return "'device_id' field not valid", 403
    return None
