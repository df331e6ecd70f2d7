# inbound_desk/schemas/__init__.py
"""
Schemas package.

Kept quiet on purpose: no aggregate re-exports. Import from the concrete
module, e.g.:
    from inbound_desk.schemas.inbound import InboundOrder
    from inbound_desk.schemas.workflow_rules import WorkflowRules
"""
