"""Built-in agent catalog. Importing this package registers every agent.

Inputs:
- None.
Output:
- Each module's `Agent` subclass registered by name with `agentrunner.core`.
Example:
```python
from agentrunner.core import available_agents
available_agents()  # ["accessibility-audit-helper", "changelog-automator", ...]
```
"""

from .accessibility_audit_helper import AccessibilityAuditHelper
from .changelog_automator import ChangelogAutomator
from .dependency_health_monitor import DependencyHealthMonitor
from .duplicate_code_detector import DuplicateCodeDetector
from .form_flow_optimizer import FormFlowOptimizer
from .license_compliance_scanner import LicenseComplianceScanner
from .link_rot_detector import LinkRotDetector
from .todo_collector import TodoCollector

__all__ = [
    "AccessibilityAuditHelper",
    "ChangelogAutomator",
    "DependencyHealthMonitor",
    "DuplicateCodeDetector",
    "FormFlowOptimizer",
    "LicenseComplianceScanner",
    "LinkRotDetector",
    "TodoCollector",
]
