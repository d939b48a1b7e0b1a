"""Pytest configuration and fixtures for SF-CICD tests."""

import json

import pytest

from sf_cicd.ai.base import CallOutcome, ProviderAdapter
from sf_cicd.config import AIProvider, Settings


class StubAdapter(ProviderAdapter):
    """Adapter that replays scripted outcomes instead of calling a provider."""

    provider = AIProvider.ANTHROPIC
    endpoint = "https://stub.invalid"

    def __init__(self, outcomes: list[CallOutcome]):
        super().__init__(api_key="stub-key")
        self.outcomes = list(outcomes)
        self.prompts: list[str] = []

    def build_payload(self, prompt, settings):
        return {}

    def build_headers(self):
        return {}

    def extract_answer(self, data):
        return ""

    def call(self, prompt: str, settings: Settings) -> CallOutcome:
        self.prompts.append(prompt)
        # Repeat the last outcome once the script runs out
        if len(self.outcomes) > 1:
            return self.outcomes.pop(0)
        return self.outcomes[0]

    @property
    def call_count(self) -> int:
        return len(self.prompts)


@pytest.fixture
def make_stub():
    """Factory for scripted adapters."""
    return StubAdapter


@pytest.fixture
def settings():
    """Settings for the Anthropic provider."""
    return Settings(
        provider=AIProvider.ANTHROPIC,
        model="claude-3-5-sonnet-20241022",
        temperature=0.2,
        max_tokens=1024,
    )


@pytest.fixture
def sleeps():
    """Records backoff sleeps instead of blocking."""
    return []


@pytest.fixture
def apex_project(tmp_path):
    """Create an SFDX project with two Apex classes."""
    classes = tmp_path / "force-app" / "main" / "default" / "classes"
    classes.mkdir(parents=True)

    (classes / "AccountService.cls").write_text("""
public with sharing class AccountService {
    public static List<Account> getAccounts() {
        return [SELECT Id, Name FROM Account LIMIT 10];
    }
}
""")

    (classes / "LeadHandler.cls").write_text("""
public class LeadHandler {
    public void handle(List<Lead> leads) {
        for (Lead l : leads) {
            update l;
        }
    }
}
""")

    (classes / "LeadHandler.cls-meta.xml").write_text("""
<?xml version="1.0" encoding="UTF-8"?>
<ApexClass xmlns="http://soap.sforce.com/2006/04/metadata">
    <apiVersion>60.0</apiVersion>
    <status>Active</status>
</ApexClass>
""")

    return tmp_path


@pytest.fixture
def prompt_template(tmp_path):
    """Create a review prompt template."""
    path = tmp_path / "config" / "apex-code-review.md"
    path.parent.mkdir(parents=True)
    path.write_text("""Review {FILE_NAME} for a {ORG_TYPE} org on API {API_VERSION}.

```apex
{CODE_CONTENT}
```

Respond with JSON like {"overall_score": 7, "issues": []}.
""")
    return path


@pytest.fixture
def review_answer():
    """Builds a model answer wrapping a review verdict in a fenced block."""

    def build(score: int, severities: list[str]) -> str:
        verdict = {
            "overall_score": score,
            "issues": [
                {"severity": severity, "message": f"{severity} issue"}
                for severity in severities
            ],
        }
        return f"Here is my review:\n```json\n{json.dumps(verdict)}\n```\nThanks."

    return build
