from .state_machine import InvalidStateTransition, OrderStateMachine

__all__ = ["InvalidStateTransition", "OrderStateMachine"]
