"""Tests for CI build-info detection."""

from src.run_summary.ci import detect_build_info


class TestDetectBuildInfo:
    """Tests for detect_build_info."""

    def test_local(self):
        info = detect_build_info({})
        assert info.is_pipeline is False
        assert info.execution_system is None

    def test_github_actions(self):
        info = detect_build_info(
            {
                "GITHUB_ACTIONS": "true",
                "GITHUB_SERVER_URL": "https://github.com",
                "GITHUB_REPOSITORY": "acme/shop",
                "GITHUB_RUN_ID": "42",
                "GITHUB_RUN_NUMBER": "7",
                "GITHUB_REF_NAME": "main",
                "GITHUB_SHA": "abcdef123456",
            }
        )
        assert info.is_pipeline is True
        assert info.execution_system == "GitHub Actions"
        assert info.build_link == "https://github.com/acme/shop/actions/runs/42"
        assert info.commit_link == "https://github.com/acme/shop/commit/abcdef123456"
        assert info.build_branch == "main"
        assert info.build_number == "7"

    def test_azure_pipelines(self):
        info = detect_build_info(
            {
                "TF_BUILD": "True",
                "SYSTEM_COLLECTIONURI": "https://dev.azure.com/acme/",
                "SYSTEM_TEAMPROJECT": "shop",
                "BUILD_BUILDID": "99",
                "BUILD_SOURCEVERSION": "deadbeef",
            }
        )
        assert info.execution_system == "Azure Pipelines"
        assert info.build_link == "https://dev.azure.com/acme/shop/_build/results?buildId=99"
        assert info.test_link.endswith("build-test-results-tab")
        assert info.commit_id == "deadbeef"

    def test_gitlab(self):
        info = detect_build_info(
            {
                "GITLAB_CI": "true",
                "CI_PIPELINE_URL": "https://gitlab.com/acme/shop/-/pipelines/5",
                "CI_PROJECT_URL": "https://gitlab.com/acme/shop",
                "CI_COMMIT_SHA": "cafe",
            }
        )
        assert info.execution_system == "GitLab CI"
        assert info.build_link == "https://gitlab.com/acme/shop/-/pipelines/5"
        assert info.commit_link == "https://gitlab.com/acme/shop/-/commit/cafe"

    def test_generic_ci(self):
        info = detect_build_info({"CI": "true"})
        assert info.is_pipeline is True
        assert info.execution_system == "Generic CI"
