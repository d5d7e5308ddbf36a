"""
Appliance deployer command line.

Commands:
    deploy <deployment.yml>   Reconcile the appliance described by the file
    target <address>          Remember an appliance address
    login <user> <password>   Remember appliance credentials
"""

import argparse
import sys
from typing import List, Optional

from loguru import logger

from appliance_deployer.config.settings import load_deployment_config
from appliance_deployer.config.store import ConfigStore
from appliance_deployer.connectivity.appliance_api import ApplianceApi
from appliance_deployer.connectivity.license_portal import PivnetApi
from appliance_deployer.core.constants import LOG_FORMAT
from appliance_deployer.core.exceptions import DeploymentError, InstallationFailedError
from appliance_deployer.progress.formatter import ProgressFormatter
from appliance_deployer.upgrade.vm_provisioner import ScriptedApplianceDeployment


# =============================================================================
# SECTION 1: LOGGING CONFIGURATION
# =============================================================================


def configure_logging(verbose: bool = False) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format=LOG_FORMAT)


# =============================================================================
# SECTION 2: COMMANDS
# =============================================================================


def execute_deploy(args) -> int:
    config = load_deployment_config(args.deployment_file)
    ConfigStore().target_and_login(
        {"target": config.ip, "username": config.username, "password": config.password}
    )
    formatter = ProgressFormatter()
    formatter.print_banner(f"{config.name} -> {config.desired_version}")

    with ApplianceApi(config.ip, config.username, config.password) as appliance, PivnetApi(
        config.pivnet_token
    ) as portal:
        deployment = ScriptedApplianceDeployment(
            config, appliance, portal, formatter=formatter
        )
        action = deployment.run()

    logger.info(f"[{config.ip}] Finished: {action.value}")
    return 0


def execute_target(args) -> int:
    return 0 if ConfigStore().target(args.address) else 1


def execute_login(args) -> int:
    ConfigStore().login(args.username, args.password)
    return 0


# =============================================================================
# SECTION 3: ARGUMENT PARSING
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="appliance-deployer",
        description="Deploy and upgrade a management appliance",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    deploy = subparsers.add_parser("deploy", help="Deploy or upgrade the appliance")
    deploy.add_argument("deployment_file", help="Path to the deployment YAML file")
    deploy.set_defaults(handler=execute_deploy)

    target = subparsers.add_parser("target", help="Set the appliance address")
    target.add_argument("address")
    target.set_defaults(handler=execute_target)

    login = subparsers.add_parser("login", help="Store appliance credentials")
    login.add_argument("username")
    login.add_argument("password")
    login.set_defaults(handler=execute_login)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        return args.handler(args)
    except DeploymentError as e:
        logger.error(f"❌ {e.message}")
        if isinstance(e, InstallationFailedError) and e.payload:
            logger.error(f"Installation log:\n{e.payload}")
        if e.remediation:
            logger.info(f"💡 {e.remediation}")
        return 1
    except Exception:
        logger.exception("❌ Unexpected error")
        return 2


if __name__ == "__main__":
    sys.exit(main())
