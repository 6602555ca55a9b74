"""gitpublisher - post-build git publishing for CI pipelines.

This package decides, once a build has finished, what to push back to the
remote repositories of the job: the build's merge-tag, a configured list of
tags and a configured list of branches.
"""

__version__ = "0.1.0"
