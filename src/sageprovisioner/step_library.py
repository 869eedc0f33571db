"""The provisioning steps, in the order they must run."""

from typing import List

from . import constants
from .models import Criticality, ExecutionContext, Step


class StepLibrary:
    """Binds each provisioning step to the service that performs it.

    Order matters: TCP and authentication settings are written before the
    single service restart that activates them, the login exists before the
    per-database users that map to it, and the databases exist before the
    data sources that point at them.
    """

    def __init__(
        self,
        registry_service,
        sql_engine,
        service_control,
        firewall_service,
        web_feature_service,
        certificate_service,
        data_source_service,
        dns_name: str,
    ):
        self.registry_service = registry_service
        self.sql_engine = sql_engine
        self.service_control = service_control
        self.firewall_service = firewall_service
        self.web_feature_service = web_feature_service
        self.certificate_service = certificate_service
        self.data_source_service = data_source_service
        self.dns_name = dns_name

    def enable_tcp_protocol(self, ctx: ExecutionContext):
        self.registry_service.configure_tcp(ctx.instance_identifier, constants.SQL_PORT)

    def enable_mixed_auth(self, ctx: ExecutionContext):
        self.sql_engine.enable_mixed_auth(ctx.connection_target)

    def restart_service(self, ctx: ExecutionContext):
        service_name = self.service_control.sql_service_name(ctx.instance_identifier)
        self.service_control.restart(service_name)
        self.sql_engine.wait_until_ready(ctx.connection_target)

    def add_firewall_rules(self, ctx: ExecutionContext):
        self.firewall_service.ensure_rules(constants.FIREWALL_RULES)

    def create_login(self, ctx: ExecutionContext):
        self.sql_engine.ensure_login(
            ctx.connection_target,
            constants.LOGIN_NAME,
            ctx.credential,
            constants.SERVER_ROLE,
        )

    def create_databases(self, ctx: ExecutionContext):
        self.sql_engine.ensure_databases(ctx.connection_target, constants.PROVISIONING_TARGETS)

    def grant_database_users(self, ctx: ExecutionContext):
        self.sql_engine.ensure_database_users(
            ctx.connection_target,
            constants.PROVISIONING_TARGETS,
            constants.LOGIN_NAME,
            constants.DATABASE_ROLE,
        )

    def install_web_features(self, ctx: ExecutionContext):
        self.web_feature_service.ensure_features(constants.WEB_FEATURES)

    def bind_certificate(self, ctx: ExecutionContext):
        self.certificate_service.ensure_bound_certificate(self.dns_name, constants.SECURE_PORT)

    def register_data_sources(self, ctx: ExecutionContext):
        self.data_source_service.register_all(
            constants.DATA_SOURCES,
            ctx.connection_target,
            constants.LOGIN_NAME,
        )

    def steps(self) -> List[Step]:
        fatal, warn = Criticality.FATAL, Criticality.WARN
        return [
            Step("enable_tcp_protocol", self.enable_tcp_protocol, fatal),
            Step("enable_mixed_auth", self.enable_mixed_auth, fatal),
            Step("restart_service", self.restart_service, fatal),
            Step("add_firewall_rules", self.add_firewall_rules, warn),
            Step("create_login", self.create_login, fatal),
            Step("create_databases", self.create_databases, fatal),
            Step("grant_database_users", self.grant_database_users, fatal),
            Step("install_web_features", self.install_web_features, warn),
            Step("bind_certificate", self.bind_certificate, warn),
            Step("register_data_sources", self.register_data_sources, warn),
        ]
