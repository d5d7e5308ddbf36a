"""
Scripted VM provisioning.

Runs operator-supplied commands to create and stop the appliance VM. The
commands are templates; ``{name}``, ``{ip}`` and ``{version}`` are filled
from the deployment file.
"""

import shlex
import subprocess
from typing import List, Optional

from loguru import logger

from appliance_deployer.core.exceptions import ConfigurationError, DeploymentError
from appliance_deployer.upgrade.appliance_deployment import ApplianceDeployment


class ScriptedApplianceDeployment(ApplianceDeployment):
    """ApplianceDeployment whose VM operations are shell commands."""

    def _render(self, template: Optional[str], setting: str) -> List[str]:
        if not template:
            raise ConfigurationError(
                f"vm.{setting} is not set",
                remediation=f"Add vm.{setting} to the deployment file",
            )
        try:
            command = template.format(
                name=self.config.name,
                ip=self.config.ip,
                version=self.desired_version,
            )
        except (KeyError, IndexError) as e:
            raise ConfigurationError(f"vm.{setting} uses unknown placeholder {e}")
        return shlex.split(command)

    def _run(self, argv: List[str]) -> None:
        logger.info(f"[{self.target}] CMD {' '.join(shlex.quote(a) for a in argv)}")
        try:
            result = subprocess.run(
                argv,
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
            )
        except FileNotFoundError as e:
            raise DeploymentError(f"Command not found: {argv[0]}") from e

        if result.stdout:
            logger.debug(f"[{self.target}] STDOUT {result.stdout.strip()}")
        if result.returncode != 0:
            raise DeploymentError(
                f"Command failed ({result.returncode}): {argv[0]}\n{result.stderr}"
            )

    def deploy_vm(self) -> None:
        self._run(self._render(self.config.vm.deploy_command, "deploy_command"))

    def stop_current_vm(self) -> None:
        self._run(self._render(self.config.vm.stop_command, "stop_command"))
