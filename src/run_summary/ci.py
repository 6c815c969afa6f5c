"""
Build metadata detection from CI environment variables.
"""

import os
from typing import Mapping, Optional

from .models import BuildInfo

GITHUB_ACTIONS = "GitHub Actions"
AZURE_PIPELINES = "Azure Pipelines"
GITLAB_CI = "GitLab CI"
GENERIC_CI = "Generic CI"


def _github(env: Mapping[str, str]) -> BuildInfo:
    server = env.get("GITHUB_SERVER_URL", "https://github.com")
    repository = env.get("GITHUB_REPOSITORY")
    run_id = env.get("GITHUB_RUN_ID")
    sha = env.get("GITHUB_SHA")
    repo_url = f"{server}/{repository}" if repository else None
    return BuildInfo(
        is_pipeline=True,
        execution_system=GITHUB_ACTIONS,
        build_id=run_id,
        build_number=env.get("GITHUB_RUN_NUMBER"),
        build_branch=env.get("GITHUB_REF_NAME"),
        build_repository=repository,
        commit_id=sha,
        build_link=f"{repo_url}/actions/runs/{run_id}" if repo_url and run_id else None,
        artifacts_link=(
            f"{repo_url}/actions/runs/{run_id}#artifacts" if repo_url and run_id else None
        ),
        commit_link=f"{repo_url}/commit/{sha}" if repo_url and sha else None,
    )


def _azure(env: Mapping[str, str]) -> BuildInfo:
    collection = (env.get("SYSTEM_COLLECTIONURI") or "").rstrip("/")
    project = env.get("SYSTEM_TEAMPROJECT")
    build_id = env.get("BUILD_BUILDID")
    base = f"{collection}/{project}/_build/results?buildId={build_id}" if (
        collection and project and build_id
    ) else None
    return BuildInfo(
        is_pipeline=True,
        execution_system=AZURE_PIPELINES,
        build_id=build_id,
        build_number=env.get("BUILD_BUILDNUMBER"),
        build_branch=env.get("BUILD_SOURCEBRANCHNAME"),
        build_repository=env.get("BUILD_REPOSITORY_NAME"),
        commit_id=env.get("BUILD_SOURCEVERSION"),
        build_link=base,
        artifacts_link=f"{base}&view=artifacts" if base else None,
        test_link=f"{base}&view=ms.vss-test-web.build-test-results-tab" if base else None,
    )


def _gitlab(env: Mapping[str, str]) -> BuildInfo:
    project_url = env.get("CI_PROJECT_URL")
    sha = env.get("CI_COMMIT_SHA")
    job_url = env.get("CI_JOB_URL")
    return BuildInfo(
        is_pipeline=True,
        execution_system=GITLAB_CI,
        build_id=env.get("CI_PIPELINE_ID"),
        build_number=env.get("CI_PIPELINE_IID"),
        build_branch=env.get("CI_COMMIT_REF_NAME"),
        build_repository=env.get("CI_PROJECT_PATH"),
        commit_id=sha,
        build_link=env.get("CI_PIPELINE_URL"),
        artifacts_link=f"{job_url}/artifacts/browse" if job_url else None,
        commit_link=f"{project_url}/-/commit/{sha}" if project_url and sha else None,
    )


def detect_build_info(env: Optional[Mapping[str, str]] = None) -> BuildInfo:
    """
    Describe the current build from CI environment variables.

    Args:
        env: Environment mapping (defaults to ``os.environ``)

    Returns:
        BuildInfo; ``is_pipeline`` is False when no CI system is detected
    """
    env = os.environ if env is None else env

    if env.get("GITHUB_ACTIONS") == "true":
        return _github(env)
    if env.get("TF_BUILD", "").lower() == "true":
        return _azure(env)
    if env.get("GITLAB_CI"):
        return _gitlab(env)
    if env.get("CI", "").lower() in ("true", "1"):
        return BuildInfo(is_pipeline=True, execution_system=GENERIC_CI)
    return BuildInfo(is_pipeline=False)
