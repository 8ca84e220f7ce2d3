"""
Unit tests for the consent view state machine.

Gateways are AsyncMocks and navigation is recorded, so every transition
can be checked without HTTP.
"""

import asyncio
import pytest
from urllib.parse import parse_qsl, urlsplit

from oauth_consent.consent_app.controller import ConsentController
from oauth_consent.consent_app.validation import REQUIRED_PARAMS
from oauth_consent.shared.errors import ConsentStateError, GatewayError
from oauth_consent.shared.oauth_models import (
    AuthorizationResult,
    Error,
    Loading,
    Ready,
    Redirecting,
    Submitting,
)


@pytest.fixture
def controller(client_info_gateway, authorization_gateway, navigator):
    """Controller wired to mock gateways and a recording navigator."""
    return ConsentController(client_info_gateway, authorization_gateway, navigator)


@pytest.fixture
def seen_states(controller):
    """States published to subscribers, in order."""
    states = []
    controller.subscribe(states.append)
    return states


class TestLoad:
    """Test cases for loading the consent view."""

    def test_initial_state_is_loading(self, controller):
        """Test that a new view starts in Loading."""
        assert isinstance(controller.state, Loading)

    @pytest.mark.asyncio
    async def test_load_success(self, controller, client_info_gateway,
                                valid_consent_params, client_info, seen_states):
        """Test that a valid request with client info reaches Ready."""
        state = await controller.load(valid_consent_params)

        assert isinstance(state, Ready)
        assert state.client_info == client_info
        assert state.request.client_id == valid_consent_params["client_id"]
        assert state.request.state == valid_consent_params["state"]
        client_info_gateway.fetch.assert_awaited_once_with(state.request)
        assert [s.kind for s in seen_states] == ["ready"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("param", REQUIRED_PARAMS)
    async def test_missing_parameter_shows_error(self, controller, client_info_gateway,
                                                 valid_consent_params, param):
        """Test that a missing parameter ends in Error without a lookup."""
        del valid_consent_params[param]

        state = await controller.load(valid_consent_params)

        assert isinstance(state, Error)
        assert param in state.message
        client_info_gateway.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("param", REQUIRED_PARAMS)
    async def test_empty_parameter_shows_error(self, controller, valid_consent_params, param):
        """Test that an empty parameter ends in Error."""
        valid_consent_params[param] = ""

        state = await controller.load(valid_consent_params)

        assert isinstance(state, Error)

    @pytest.mark.asyncio
    async def test_invalid_response_type_message(self, controller, valid_consent_params):
        """Test that the error names the invalid response_type."""
        valid_consent_params["response_type"] = "token"

        state = await controller.load(valid_consent_params)

        assert isinstance(state, Error)
        assert "response_type" in state.message

    @pytest.mark.asyncio
    async def test_invalid_code_challenge_method_message(self, controller, valid_consent_params):
        """Test that the error names the invalid code_challenge_method."""
        valid_consent_params["code_challenge_method"] = "plain"

        state = await controller.load(valid_consent_params)

        assert isinstance(state, Error)
        assert "code_challenge_method" in state.message

    @pytest.mark.asyncio
    async def test_client_info_failure_shows_error(self, controller, client_info_gateway,
                                                   valid_consent_params):
        """Test that a failed lookup ends in Error."""
        client_info_gateway.fetch.side_effect = GatewayError(
            "Failed to load application details (HTTP 500)", GatewayError.STATUS, 500
        )

        state = await controller.load(valid_consent_params)

        assert isinstance(state, Error)
        assert state.message == "Failed to load application details (HTTP 500)"
        client_info_gateway.fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_allowed_redirect_hosts_enforced(self, client_info_gateway, authorization_gateway,
                                                   navigator, valid_consent_params):
        """Test that the redirect host allow-list is applied on load."""
        controller = ConsentController(
            client_info_gateway, authorization_gateway, navigator, ["app.example.com"]
        )

        state = await controller.load(valid_consent_params)

        assert isinstance(state, Error)
        assert "redirect_uri" in state.message

    @pytest.mark.asyncio
    async def test_load_only_once(self, controller, valid_consent_params):
        """Test that a view cannot be loaded twice."""
        await controller.load(valid_consent_params)

        with pytest.raises(ConsentStateError):
            await controller.load(valid_consent_params)


class TestApprove:
    """Test cases for approving the authorization request."""

    @pytest.mark.asyncio
    async def test_happy_path_redirects_with_code_and_state(self, controller, authorization_gateway,
                                                            navigator, valid_consent_params,
                                                            seen_states):
        """Test the complete flow from load to redirect."""
        authorization_gateway.authorize.return_value = AuthorizationResult(code="abc123")

        await controller.load(valid_consent_params)
        state = await controller.approve()

        assert isinstance(state, Redirecting)
        assert navigator.redirects == [state.url]

        target = urlsplit(state.url)
        expected = urlsplit(valid_consent_params["redirect_uri"])
        assert (target.scheme, target.netloc, target.path) == (expected.scheme, expected.netloc, expected.path)
        assert dict(parse_qsl(target.query)) == {
            "code": "abc123",
            "state": valid_consent_params["state"]
        }
        assert [s.kind for s in seen_states] == ["ready", "submitting", "redirecting"]

    @pytest.mark.asyncio
    async def test_sad_path_shows_error_without_navigation(self, controller, authorization_gateway,
                                                           navigator, valid_consent_params,
                                                           seen_states):
        """Test that a failed authorization ends in Error and does not navigate."""
        authorization_gateway.authorize.side_effect = GatewayError(
            "Authorization failed with status 500", GatewayError.STATUS, 500
        )

        await controller.load(valid_consent_params)
        state = await controller.approve()

        assert isinstance(state, Error)
        assert state.message == "Authorization failed with status 500"
        assert navigator.redirects == []
        assert navigator.back_calls == 0
        assert navigator.home_calls == 0
        assert [s.kind for s in seen_states] == ["ready", "submitting", "error"]

    @pytest.mark.asyncio
    async def test_authorize_receives_validated_request(self, controller, authorization_gateway,
                                                        valid_consent_params):
        """Test that the gateway gets the request validated on load."""
        authorization_gateway.authorize.return_value = AuthorizationResult(code="abc123")

        ready = await controller.load(valid_consent_params)
        await controller.approve()

        authorization_gateway.authorize.assert_awaited_once_with(ready.request)

    @pytest.mark.asyncio
    async def test_submitting_while_in_flight(self, controller, authorization_gateway,
                                              valid_consent_params):
        """Test that the view is Submitting while the call is pending and refuses a second approve."""
        release = asyncio.Event()

        async def slow_authorize(request):
            await release.wait()
            return AuthorizationResult(code="abc123")

        authorization_gateway.authorize.side_effect = slow_authorize
        await controller.load(valid_consent_params)

        pending = asyncio.ensure_future(controller.approve())
        await asyncio.sleep(0)

        assert isinstance(controller.state, Submitting)
        with pytest.raises(ConsentStateError):
            await controller.approve()

        release.set()
        state = await pending

        assert isinstance(state, Redirecting)
        authorization_gateway.authorize.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_approve_requires_ready(self, controller):
        """Test that approve is refused while Loading."""
        with pytest.raises(ConsentStateError) as exc_info:
            await controller.approve()

        assert exc_info.value.state_kind == "loading"

    @pytest.mark.asyncio
    async def test_approve_refused_after_error(self, controller, authorization_gateway,
                                               valid_consent_params):
        """Test that Error is terminal."""
        del valid_consent_params["client_id"]
        await controller.load(valid_consent_params)

        with pytest.raises(ConsentStateError):
            await controller.approve()

        authorization_gateway.authorize.assert_not_awaited()


class TestCancel:
    """Test cases for cancelling the consent view."""

    @pytest.mark.asyncio
    async def test_cancel_with_history_goes_back(self, controller, navigator, valid_consent_params):
        """Test that cancel with history depth 2 goes back."""
        navigator.depth = 2
        await controller.load(valid_consent_params)

        controller.cancel()

        assert navigator.back_calls == 1
        assert navigator.home_calls == 0
        assert isinstance(controller.state, Ready)

    @pytest.mark.asyncio
    async def test_cancel_without_history_goes_home(self, controller, navigator, valid_consent_params):
        """Test that cancel with history depth 1 goes to the root path."""
        navigator.depth = 1
        await controller.load(valid_consent_params)

        controller.cancel()

        assert navigator.home_calls == 1
        assert navigator.back_calls == 0
        assert isinstance(controller.state, Ready)

    def test_cancel_while_loading(self, controller, navigator):
        """Test that cancel is allowed before the view is ready."""
        controller.cancel()

        assert navigator.home_calls == 1
        assert isinstance(controller.state, Loading)

    @pytest.mark.asyncio
    async def test_cancel_refused_after_redirect(self, controller, authorization_gateway,
                                                 valid_consent_params):
        """Test that cancel is refused once the view is terminal."""
        authorization_gateway.authorize.return_value = AuthorizationResult(code="abc123")
        await controller.load(valid_consent_params)
        await controller.approve()

        with pytest.raises(ConsentStateError):
            controller.cancel()


class TestTeardown:
    """Test cases for responses arriving after the view is closed."""

    @pytest.mark.asyncio
    async def test_late_client_info_discarded(self, controller, client_info_gateway,
                                              valid_consent_params, client_info, seen_states):
        """Test that client info arriving after close is not applied."""
        async def fetch_then_close(request):
            controller.close()
            return client_info

        client_info_gateway.fetch.side_effect = fetch_then_close

        state = await controller.load(valid_consent_params)

        assert isinstance(state, Loading)
        assert seen_states == []

    @pytest.mark.asyncio
    async def test_late_authorization_discarded(self, controller, authorization_gateway,
                                                navigator, valid_consent_params):
        """Test that an authorization code arriving after close does not navigate."""
        async def authorize_then_close(request):
            controller.close()
            return AuthorizationResult(code="abc123")

        authorization_gateway.authorize.side_effect = authorize_then_close
        await controller.load(valid_consent_params)

        state = await controller.approve()

        assert isinstance(state, Submitting)
        assert navigator.redirects == []

    @pytest.mark.asyncio
    async def test_late_failure_discarded(self, controller, client_info_gateway,
                                          valid_consent_params):
        """Test that a failure arriving after close does not show an error."""
        async def fail_after_close(request):
            controller.close()
            raise GatewayError("boom", GatewayError.TRANSPORT)

        client_info_gateway.fetch.side_effect = fail_after_close

        state = await controller.load(valid_consent_params)

        assert isinstance(state, Loading)
