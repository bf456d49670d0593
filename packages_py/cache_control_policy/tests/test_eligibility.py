"""Tests for the eligibility filter."""
import pytest

from cache_control_policy import (
    RequestContext,
    has_excluded_query_param,
    is_eligible,
    is_policy_method,
    matches_route,
    resolve_policy_configuration,
)


@pytest.fixture
def config():
    return resolve_policy_configuration({"route_patterns": ["^/blog", "^/news/"]})


class TestIsEligible:
    def test_matching_get_request(self, config, make_request):
        assert is_eligible(config, make_request("https://example.com/blog/post-1")) is True

    def test_disabled_policy(self, make_request):
        config = resolve_policy_configuration({"enabled": False})
        assert is_eligible(config, make_request("https://example.com/")) is False

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "HEAD"])
    def test_other_methods_not_eligible(self, config, make_request, method):
        request = make_request("https://example.com/blog", method=method)
        assert is_eligible(config, request) is False

    def test_lowercase_method_is_normalized(self, config):
        request = RequestContext(method="get", path="/blog")
        assert is_eligible(config, request) is True

    def test_unmatched_route(self, config, make_request):
        assert is_eligible(config, make_request("https://example.com/about")) is False

    def test_preview_parameter_disables_caching(self, config, make_request):
        request = make_request("https://example.com/blog/post-1?preview=1")
        assert is_eligible(config, request) is False

    def test_blank_preview_parameter_still_counts(self, config, make_request):
        request = make_request("https://example.com/blog/post-1?preview")
        assert is_eligible(config, request) is False

    def test_unrelated_query_parameters_are_fine(self, config, make_request):
        request = make_request("https://example.com/blog?page=2&sort=new")
        assert is_eligible(config, request) is True

    def test_empty_route_list_matches_nothing(self, make_request):
        config = resolve_policy_configuration({"route_patterns": []})
        assert is_eligible(config, make_request("https://example.com/")) is False


class TestMatchesRoute:
    def test_pattern_is_matched_against_path_not_url(self):
        config = resolve_policy_configuration({"route_patterns": ["example\\.com"]})
        request = RequestContext.from_url("GET", "https://example.com/page")
        assert matches_route(config, request.path) is False

    def test_any_pattern_may_match(self, config):
        assert matches_route(config, "/news/today") is True
        assert matches_route(config, "/blog") is True

    def test_search_semantics(self):
        config = resolve_policy_configuration({"route_patterns": ["/posts/\\d+"]})
        assert matches_route(config, "/en/posts/42") is True


class TestHelpers:
    def test_is_policy_method(self, config):
        assert is_policy_method(config, "GET") is True
        assert is_policy_method(config, "get") is True
        assert is_policy_method(config, "POST") is False

    def test_has_excluded_query_param(self, make_request):
        config = resolve_policy_configuration({"excluded_if_query_param_present": ["token", "preview"]})
        assert has_excluded_query_param(config, make_request("https://e.com/?token=x")) is True
        assert has_excluded_query_param(config, make_request("https://e.com/?page=1")) is False

    def test_no_exclusions(self, make_request):
        config = resolve_policy_configuration({"excluded_if_query_param_present": []})
        assert has_excluded_query_param(config, make_request("https://e.com/?preview=1")) is False
