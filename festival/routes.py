from datetime import datetime, timezone

from flask import Blueprint, jsonify

app = Blueprint('main', __name__)

@app.route('/health')
def health():
    return jsonify({'status': 'OK', 'timestamp': datetime.now(timezone.utc).isoformat()})
