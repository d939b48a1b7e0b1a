"""Exception hierarchy for SF-CICD.

AI provider failures are not exceptions: they travel as ``Failure`` outcomes
(see ``sf_cicd.ai.base``). These exceptions cover the pipeline steps around
them, where a failure should stop the job.
"""


class SFCICDError(Exception):
    """Base class for pipeline errors."""


class OrgAuthError(SFCICDError):
    """Salesforce org authentication or verification failed."""


class ReviewError(SFCICDError):
    """The Apex review could not be started (bad input, missing template)."""
