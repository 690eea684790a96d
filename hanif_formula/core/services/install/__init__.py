"""
Install service: package re-exports.

    from hanif_formula.core.services.install import install_layout, verify
"""

from hanif_formula.core.services.install.dependencies import (  # noqa: F401
    parse_dep_overrides,
    resolve_dependencies,
    resolve_dependency,
)
from hanif_formula.core.services.install.installer import (  # noqa: F401
    InstallResult,
    install_executable,
    install_layout,
    install_tree,
    rewrite_shebang,
)
from hanif_formula.core.services.install.text_transform import (  # noqa: F401
    ambient_shebang_pattern,
    inreplace,
    inreplace_file,
)
from hanif_formula.core.services.install.verifier import (  # noqa: F401
    DEFAULT_CHECKS,
    CheckOutcome,
    VerificationReport,
    verify,
)
