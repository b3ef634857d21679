"""yoo -- scaffold a project from a remote template.

Clones a template, creates the matching remote repository, pushes the
``master`` and ``dev`` branches and registers the project with the
registration service.  Failures leave an effect log behind so that the
command layer can roll back whatever was already created.

Key modules:
    saga          - ScaffoldSaga, the ordered scaffolding steps
    compensation  - best-effort rollback driven by the effect log
    api           - registration service and GitLab clients
    vcs           - git working-copy operations
"""

__version__ = "0.1.0"
