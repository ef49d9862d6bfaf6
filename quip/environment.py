from typing import Any, Dict, Optional
from quip.errors import NAME_ERROR, TYPE_ERROR, error


class Environment:
    """A scope mapping names to values, chained to an optional parent.

    Mutable bindings live in `vars` and constant bindings in `consts`; a
    name appears in at most one of them per scope.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.vars: Dict[str, Any] = {}
        self.consts: Dict[str, Any] = {}

    def get(self, name: str) -> Any:
        if name in self.vars:
            return self.vars[name]
        if name in self.consts:
            return self.consts[name]
        if self.parent is not None:
            return self.parent.get(name)
        raise error(NAME_ERROR, f'Variable "{name}" not found')

    def set(self, name: str, value: Any):
        # the nearest scope binding the name owns it
        if name in self.vars:
            self.vars[name] = value
        elif name in self.consts:
            raise error(TYPE_ERROR, f'cannot assign to constant "{name}"')
        elif self.parent is not None:
            self.parent.set(name, value)
        else:
            raise error(NAME_ERROR, f'Variable "{name}" not declared')

    def declare_var(self, name: str, value: Any):
        self.vars[name] = value

    def declare_const(self, name: str, value: Any):
        self.consts[name] = value

    def is_declared(self, name: str) -> bool:
        """True if this scope (not its ancestors) binds the name."""
        return name in self.vars or name in self.consts

    def is_reachable(self, name: str) -> bool:
        return self.owner(name) is not None

    def owner(self, name: str) -> Optional['Environment']:
        env: Optional[Environment] = self
        while env is not None:
            if env.is_declared(name):
                return env
            env = env.parent
        return None
