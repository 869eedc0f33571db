"""Inbound firewall rules via netsh advfirewall."""

from typing import Callable, Iterable

from sageprovisioner.errors import ProvisionerError
from sageprovisioner.models import FirewallRule


class FirewallService:
    """Creates inbound allow rules, skipping rules that already exist.

    netsh happily creates duplicate rules with the same name, so existence is
    checked by name before adding.
    """

    NETSH_FIREWALL = ["netsh", "advfirewall", "firewall"]

    def __init__(self, logger, run_cmd: Callable):
        self.logger = logger
        self.run_cmd = run_cmd

    def rule_exists(self, rule: FirewallRule) -> bool:
        result = self.run_cmd(
            self.NETSH_FIREWALL + ["show", "rule", f"name={rule.name}"],
            check=False,
            capture_output=True,
        )
        return result.returncode == 0

    def ensure_rule(self, rule: FirewallRule) -> bool:
        if self.rule_exists(rule):
            self.logger.info("Firewall rule '%s' already exists; skipping.", rule.name)
            return False

        self.run_cmd(
            self.NETSH_FIREWALL
            + [
                "add",
                "rule",
                f"name={rule.name}",
                "dir=in",
                "action=allow",
                f"protocol={rule.protocol}",
                f"localport={rule.port}",
            ],
            check=True,
            capture_output=True,
        )
        self.logger.info("Added firewall rule '%s' (%s/%s).", rule.name, rule.protocol, rule.port)
        return True

    def ensure_rules(self, rules: Iterable[FirewallRule]):
        failures = []
        for rule in rules:
            try:
                self.ensure_rule(rule)
            except ProvisionerError as exc:
                self.logger.warning("Firewall rule '%s' failed: %s", rule.name, exc)
                failures.append(rule.name)

        if failures:
            raise ProvisionerError(f"Could not create firewall rule(s): {', '.join(failures)}.")
