from urllib.parse import parse_qs, urlparse

from podauth.models.config import ProviderConfig
from podauth.services.flow import build_authorization_url, parse_callback_url


class TestBuildAuthorizationUrl:
    def setup_method(self):
        self.config = ProviderConfig(issuer_url="https://pods.example.org")

    def test_contains_pkce_and_consent_parameters(self):
        # Act
        url = build_authorization_url(
            self.config, client_id="C1", code_challenge="challenge", state="S1"
        )

        # Assert
        parsed = urlparse(url)
        params = parse_qs(parsed.query)
        assert url.startswith("https://pods.example.org/.oidc/auth?response_type=code&")
        assert params == {
            "response_type": ["code"],
            "client_id": ["C1"],
            "redirect_uri": ["http://localhost:44007/"],
            "scope": ["openid profile"],
            "state": ["S1"],
            "code_challenge": ["challenge"],
            "code_challenge_method": ["S256"],
            "prompt": ["consent"],
        }

    def test_generates_state_when_missing(self):
        # Act
        url = build_authorization_url(self.config, client_id="C1", code_challenge="c")

        # Assert
        state = parse_qs(urlparse(url).query)["state"][0]
        assert state.isdigit()


class TestParseCallbackUrl:
    def test_success_callback(self):
        # Act
        response = parse_callback_url("http://localhost:44007/?code=XYZ&state=S1")

        # Assert
        assert response.code == "XYZ"
        assert response.state == "S1"
        assert response.is_success()

    def test_error_callback(self):
        # Act
        response = parse_callback_url(
            "http://localhost:44007/?error=access_denied&error_description=User%20denied&state=S1"
        )

        # Assert
        assert response.is_error()
        assert response.error_description == "User denied"
        assert response.code is None
