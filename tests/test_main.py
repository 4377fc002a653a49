from fastapi.testclient import TestClient

from relay_agent.main import app, render_twiml, settings, websocket_manager

client = TestClient(app)


def test_health_check():
    """Test the health check endpoint returns correct response"""
    response = client.get("/health")
    assert response.status_code == 200

    response_json = response.json()
    assert response_json["status"] == "healthy"
    assert isinstance(response_json["openai_api_key_configured"], bool)
    assert response_json["active_calls"] == 0


def test_root_endpoint():
    """Test the root endpoint returns the correct API information"""
    response = client.get("/")
    assert response.status_code == 200

    response_json = response.json()
    assert response_json["name"] == "Relay Agent"
    assert response_json["version"] == "1.0.0"
    assert {"/twiml", "/ws", "/health"} <= set(response_json["endpoints"])


def test_twiml_connects_call_to_websocket():
    """Test the TwiML webhook answers with a ConversationRelay instruction"""
    for method in (client.get, client.post):
        response = method("/twiml")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/xml")
        assert "<Connect>" in response.text
        assert f'url="{settings.websocket_url}"' in response.text
        assert "welcomeGreeting=" in response.text


def test_render_twiml_escapes_attributes():
    document = render_twiml("wss://example.com/ws", 'Say "hi" & <smile>')

    assert document.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert 'url="wss://example.com/ws"' in document
    assert "welcomeGreeting='Say \"hi\" &amp; &lt;smile&gt;'" in document


def test_websocket_endpoint_initialization():
    """Test that websocket_manager is properly initialized"""
    assert websocket_manager is not None
    assert websocket_manager.turn_engine is not None
    assert "setup" in websocket_manager.handlers
    assert "prompt" in websocket_manager.handlers
    assert "interrupt" in websocket_manager.handlers
