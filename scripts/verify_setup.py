"""Verify that the setup is correct before generating statistics."""
import asyncio
import os
import sys
from pathlib import Path
from dotenv import load_dotenv
from profile_stats.domain.exceptions import ConfigurationError, GitHubAPIError
from profile_stats.infrastructure.configuration import Settings
from profile_stats.infrastructure.github_client import GitHubClient

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')

TEMPLATES = ("overview.svg", "languages.svg", "contribution_grid.svg")


def check_environment_variables():
    """Check required environment variables."""
    print("Checking environment variables...")

    optional_vars = [
        "GITHUB_API_URL", "EXCLUDED", "EXCLUDED_LANGS", "EXCLUDE_FORKED_REPOS",
        "LANGUAGE_LIMIT", "TEMPLATE_FOLDER", "OUTPUT_FOLDER",
    ]

    missing = []
    if not (os.getenv("ACCESS_TOKEN") or os.getenv("GITHUB_TOKEN")):
        missing.append("ACCESS_TOKEN")
    if not os.getenv("GITHUB_ACTOR"):
        missing.append("GITHUB_ACTOR")

    if missing:
        print(f"❌ Missing required environment variables: {', '.join(missing)}")
        return False

    print("✅ Required environment variables set")

    for var in optional_vars:
        if os.getenv(var):
            print(f"   {var}: {os.getenv(var)}")

    return True


def check_settings():
    """Check that settings parse; returns them or None."""
    print("\nChecking settings...")

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        print(f"❌ Invalid settings: {e}")
        return None

    print(f"✅ Settings valid (API: {settings.api_url})")
    return settings


def check_templates(settings):
    """Check that every template file exists."""
    print("\nChecking templates...")

    folder = Path(settings.template_folder)
    missing = [name for name in TEMPLATES if not (folder / name).is_file()]
    if missing:
        print(f"❌ Missing templates in {folder}: {', '.join(missing)}")
        return False

    print(f"✅ All templates found in {folder}")
    return True


async def _query_years(settings):
    async with GitHubClient(
        settings.access_token,
        api_url=settings.api_url,
        request_timeout=settings.request_timeout,
        graphql_retry_attempts=1
    ) as client:
        return await client.query_contribution_years()


def check_api_connection(settings):
    """Check the token against the GraphQL API."""
    print("\nChecking GitHub API connection...")

    try:
        years = asyncio.run(_query_years(settings))
    except GitHubAPIError as e:
        print(f"❌ Failed to query GitHub API: {e}")
        return False

    print(f"✅ Connected to GitHub API ({len(years)} contribution years)")
    return True


def main():
    """Run all checks."""
    print("=" * 60)
    print("GitHub Statistics Setup Verification")
    print("=" * 60)

    if not check_environment_variables():
        sys.exit(1)

    settings = check_settings()
    if settings is None:
        sys.exit(1)

    checks = [
        check_templates(settings),
        check_api_connection(settings),
    ]

    print("\n" + "=" * 60)
    if all(checks):
        print("✅ All checks passed! Ready to generate statistics.")
        sys.exit(0)
    print("❌ Some checks failed. Please fix the issues above.")
    sys.exit(1)


if __name__ == "__main__":
    main()
