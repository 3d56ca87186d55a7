"""
Flask application for the voting demo UI.

Proxies browser calls to the tally API so the page never talks to the
backend directly.
"""
import logging

from flask import Flask, request, jsonify
import requests

from . import config

logging.basicConfig(
    level=logging.DEBUG if config.DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config['SECRET_KEY'] = config.SECRET_KEY
app.config['DEBUG'] = config.DEBUG


def api_url(path: str) -> str:
    """Build a versioned tally API URL."""
    return f'{config.TALLY_API_URL}/api/{config.API_VERSION}/{path}'


def relay(response: requests.Response, failure_message: str):
    """
    Pass a tally API response back to the browser.

    Successful and client-error responses are relayed with their status so
    "not found" and "nullifier already used" reach the page intact; anything
    else becomes a generic 500.
    """
    if response.status_code < 500:
        try:
            return jsonify(response.json()), response.status_code
        except ValueError:
            logger.error(f"{failure_message}: non-JSON response ({response.status_code})")
            return jsonify({'error': failure_message}), 500

    logger.error(f"{failure_message}: backend returned {response.status_code}")
    return jsonify({'error': failure_message}), 500


@app.route('/')
def index():
    """Service information."""
    return jsonify({
        'service': 'tally-demo-ui',
        'backend': config.TALLY_API_URL,
        'endpoints': {
            'create_session': '/api/session/create',
            'generate_nullifier': '/api/nullifier/generate',
            'submit_vote': '/api/vote/submit',
            'get_results': '/api/results/<proposal_id>',
            'health': '/health'
        }
    })


@app.route('/api/session/create', methods=['POST'])
def create_session():
    """Create a voting session."""
    data = request.get_json(silent=True) or {}

    try:
        response = requests.post(
            api_url('session/create'),
            json={'proposalId': data.get('proposalId')},
            timeout=config.REQUEST_TIMEOUT
        )
    except requests.RequestException as e:
        logger.error(f"Error creating session: {e}")
        return jsonify({'error': 'Failed to create session'}), 503

    return relay(response, 'Failed to create session')


@app.route('/api/nullifier/generate', methods=['POST'])
def generate_nullifier():
    """Generate a nullifier for a voter id."""
    data = request.get_json(silent=True) or {}

    try:
        response = requests.post(
            api_url('nullifier/generate'),
            json={'voterId': data.get('voterId')},
            timeout=config.REQUEST_TIMEOUT
        )
    except requests.RequestException as e:
        logger.error(f"Error generating nullifier: {e}")
        return jsonify({'error': 'Failed to generate nullifier'}), 503

    return relay(response, 'Failed to generate nullifier')


@app.route('/api/vote/submit', methods=['POST'])
def submit_vote():
    """Submit a vote."""
    data = request.get_json(silent=True) or {}

    try:
        response = requests.post(
            api_url('vote/submit'),
            json={'proposalId': data.get('proposalId'), 'vote': data.get('vote')},
            timeout=config.REQUEST_TIMEOUT
        )
    except requests.RequestException as e:
        logger.error(f"Error submitting vote: {e}")
        return jsonify({'error': 'Failed to submit vote'}), 503

    return relay(response, 'Failed to submit vote')


@app.route('/api/results/<proposal_id>')
def get_results(proposal_id):
    """Get results for a proposal."""
    try:
        response = requests.get(
            api_url('results'),
            params={'proposalId': proposal_id},
            timeout=config.REQUEST_TIMEOUT
        )
    except requests.RequestException as e:
        logger.error(f"Error fetching results: {e}")
        return jsonify({'error': 'Failed to fetch results'}), 503

    return relay(response, 'Failed to fetch results')


@app.route('/health')
def health():
    """Health check endpoint."""
    try:
        # Check if the tally API is reachable
        response = requests.get(api_url('health'), timeout=config.HEALTH_TIMEOUT)
        api_healthy = response.status_code == 200
    except requests.RequestException as e:
        logger.warning(f"Tally API health check failed: {e}")
        api_healthy = False

    return jsonify({
        'status': 'healthy' if api_healthy else 'degraded',
        'ui': 'up',
        'tally_api': 'up' if api_healthy else 'down'
    }), 200 if api_healthy else 503


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=config.PORT, debug=config.DEBUG)
