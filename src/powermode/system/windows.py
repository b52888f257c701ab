"""Windows implementation of the control surface.

Settings are read and changed through ``powercfg``, PowerShell cmdlets and
the registry. Every helper raises ``ControlSurfaceError`` when the command
fails; callers in the core record the failure and carry on.
"""

from __future__ import annotations

import json
import logging
import os
import re
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Final

from powermode.constants import (
    DIAGNOSTICS_SERVICE,
    PREFETCH_SERVICE,
    SEARCH_INDEXING_SERVICE,
)
from powermode.errors import ControlSurfaceError
from powermode.models import (
    RegistryStartupItem,
    ServiceState,
    ShortcutStartupItem,
    StartupItem,
    WirelessAdapterState,
)

logger: Final = logging.getLogger(__name__)

RUN_KEY: Final = r"Software\Microsoft\Windows\CurrentVersion\Run"
BACKGROUND_APPS_KEY: Final = r"Software\Microsoft\Windows\CurrentVersion\BackgroundAccessApplications"
VISUAL_EFFECTS_KEY: Final = r"Software\Microsoft\Windows\CurrentVersion\Explorer\VisualEffects"
PUSH_NOTIFICATIONS_KEY: Final = r"Software\Microsoft\Windows\CurrentVersion\PushNotifications"

# powercfg aliases for the battery saver threshold
SUB_ENERGYSAVER: Final = "SUB_ENERGYSAVER"
ESBATTTHRESHOLD: Final = "ESBATTTHRESHOLD"

_GUID_RE: Final = re.compile(r"GUID:\s+([0-9a-f-]{36})", re.IGNORECASE)


def _quote(value: str) -> str:
    """Quote a value as a single-quoted PowerShell string literal."""
    return "'" + value.replace("'", "''") + "'"


def _startup_folders() -> list[Path]:
    folders = []
    appdata = os.environ.get("APPDATA")
    programdata = os.environ.get("ProgramData")
    if appdata:
        folders.append(Path(appdata) / "Microsoft/Windows/Start Menu/Programs/Startup")
    if programdata:
        folders.append(Path(programdata) / "Microsoft/Windows/Start Menu/Programs/Startup")
    return folders


class WindowsControlSurface:
    """Control surface backed by Windows administrative tooling."""

    def __init__(self, timeout: float = 30.0) -> None:
        """Initialize the surface.

        Args:
            timeout: Seconds to wait for each external command
        """
        self.timeout = timeout

    # ── command helpers ──────────────────────────────────────────────────
    def _run(self, args: Sequence[str]) -> str:
        """Run a command and return its stdout.

        Raises:
            ControlSurfaceError: On a non-zero exit, a timeout or a missing binary
        """
        command = " ".join(args[:2])
        logger.debug("Running %s", list(args))
        try:
            proc = subprocess.run(
                list(args),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise ControlSurfaceError(command, f"command not found: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ControlSurfaceError(command, f"timed out after {self.timeout:g}s") from exc

        out = (proc.stdout or "").strip()
        if proc.returncode != 0:
            err = (proc.stderr or "").strip() or out or f"exited with code {proc.returncode}"
            raise ControlSurfaceError(command, err, proc.returncode)
        return out

    def _powershell(self, script: str) -> str:
        return self._run(
            ["powershell", "-NoProfile", "-ExecutionPolicy", "Bypass", "-Command", script]
        )

    def _powershell_json(self, script: str) -> Any:
        out = self._powershell(f"{script} | ConvertTo-Json -Compress")
        if not out:
            return None
        try:
            return json.loads(out)
        except json.JSONDecodeError as exc:
            raise ControlSurfaceError("powershell", f"unparseable output: {out[:200]}") from exc

    def _get_user_dword(self, key_path: str, name: str, default: int) -> int:
        """Read a DWORD under HKCU, returning ``default`` when it is not set."""
        import winreg  # type: ignore[import-not-found]

        try:
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, key_path, 0, winreg.KEY_READ) as key:
                value, _ = winreg.QueryValueEx(key, name)
        except FileNotFoundError:
            return default
        except OSError as exc:
            raise ControlSurfaceError(f"reg {key_path}\\{name}", str(exc)) from exc
        return int(value)

    def _set_user_dword(self, key_path: str, name: str, value: int) -> None:
        import winreg  # type: ignore[import-not-found]

        try:
            with winreg.CreateKeyEx(winreg.HKEY_CURRENT_USER, key_path, 0, winreg.KEY_SET_VALUE) as key:
                winreg.SetValueEx(key, name, 0, winreg.REG_DWORD, value)
        except OSError as exc:
            raise ControlSurfaceError(f"reg {key_path}\\{name}", str(exc)) from exc

    # ── power plan and display ───────────────────────────────────────────
    def get_active_power_plan(self) -> str:
        out = self._run(["powercfg", "/getactivescheme"])
        match = _GUID_RE.search(out)
        if not match:
            raise ControlSurfaceError("powercfg /getactivescheme", f"no GUID in output: {out!r}")
        return match.group(1).lower()

    def set_active_power_plan(self, plan_id: str) -> None:
        self._run(["powercfg", "/setactive", plan_id])

    def get_brightness(self) -> int:
        out = self._powershell(
            "(Get-CimInstance -Namespace root/WMI -ClassName WmiMonitorBrightness "
            "-ErrorAction Stop | Select-Object -First 1).CurrentBrightness"
        )
        try:
            return int(out)
        except ValueError as exc:
            raise ControlSurfaceError("WmiMonitorBrightness", f"unexpected value {out!r}") from exc

    def set_brightness(self, percent: int) -> None:
        self._powershell(
            "Get-CimInstance -Namespace root/WMI -ClassName WmiMonitorBrightnessMethods "
            "-ErrorAction Stop | Invoke-CimMethod -MethodName WmiSetBrightness "
            f"-Arguments @{{Timeout=0; Brightness={int(percent)}}} | Out-Null"
        )

    def set_power_threshold(self, percent: int) -> None:
        self._run(
            ["powercfg", "/setdcvalueindex", "SCHEME_CURRENT", SUB_ENERGYSAVER, ESBATTTHRESHOLD, str(percent)]
        )
        self._run(["powercfg", "/setactive", "SCHEME_CURRENT"])

    def set_display_timeout(self, minutes: int) -> None:
        self._run(["powercfg", "/change", "monitor-timeout-dc", str(minutes)])
        self._run(["powercfg", "/change", "monitor-timeout-ac", str(minutes)])

    # ── radios ───────────────────────────────────────────────────────────
    def get_wireless_adapter(self) -> WirelessAdapterState | None:
        data = self._powershell_json(
            "Get-NetAdapter -Physical | Where-Object { $_.PhysicalMediaType -match '802.11' "
            "-or $_.InterfaceDescription -match 'Wi-?Fi|Wireless' } | Select-Object -First 1 "
            "@{n='name';e={$_.Name}}, @{n='status';e={$_.Status.ToString()}}"
        )
        if not data:
            return None
        return WirelessAdapterState(
            adapter_id=data["name"], enabled=data["status"].lower() != "disabled"
        )

    def set_wireless_enabled(self, adapter_id: str, enabled: bool) -> None:
        verb = "Enable" if enabled else "Disable"
        self._powershell(f"{verb}-NetAdapter -Name {_quote(adapter_id)} -Confirm:$false")

    def set_bluetooth_device_enabled(self, enabled: bool) -> None:
        verb = "Enable" if enabled else "Disable"
        self._powershell(
            "Get-PnpDevice -Class Bluetooth -PresentOnly -ErrorAction Stop | "
            f"{verb}-PnpDevice -Confirm:$false -ErrorAction Stop"
        )

    # ── services and startup items ───────────────────────────────────────
    def get_service_state(self, name: str) -> ServiceState:
        data = self._powershell_json(
            f"$s = Get-Service -Name {_quote(name)} -ErrorAction Stop; "
            "@{start=$s.StartType.ToString(); status=$s.Status.ToString()}"
        )
        if not data:
            raise ControlSurfaceError("Get-Service", f"no data for {name!r}")
        return ServiceState(
            name=name, startup_type=data["start"], running=data["status"] == "Running"
        )

    def set_service_state(self, name: str, startup_type: str, running: bool) -> None:
        action = (
            f"Start-Service -Name {_quote(name)} -ErrorAction Stop"
            if running
            else f"Stop-Service -Name {_quote(name)} -Force -ErrorAction Stop"
        )
        self._powershell(
            f"Set-Service -Name {_quote(name)} -StartupType {startup_type} -ErrorAction Stop; {action}"
        )

    def list_startup_items(self) -> list[StartupItem]:
        items: list[StartupItem] = []
        items.extend(self._registry_startup_items())
        for folder in _startup_folders():
            if not folder.is_dir():
                continue
            for lnk in sorted(folder.glob("*.lnk")):
                items.append(self._read_shortcut(lnk))
        return items

    def _registry_startup_items(self) -> list[RegistryStartupItem]:
        import winreg  # type: ignore[import-not-found]

        found: list[RegistryStartupItem] = []
        try:
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, RUN_KEY) as key:
                index = 0
                while True:
                    try:
                        name, value, _ = winreg.EnumValue(key, index)
                    except OSError:
                        break
                    found.append(RegistryStartupItem(path=f"HKCU\\{RUN_KEY}", name=name, value=str(value)))
                    index += 1
        except OSError as exc:
            raise ControlSurfaceError(f"reg HKCU\\{RUN_KEY}", str(exc)) from exc
        return found

    def _read_shortcut(self, lnk: Path) -> ShortcutStartupItem:
        data = self._powershell_json(
            f"$l = (New-Object -ComObject WScript.Shell).CreateShortcut({_quote(str(lnk))}); "
            "@{target=$l.TargetPath; arguments=$l.Arguments; cwd=$l.WorkingDirectory}"
        )
        return ShortcutStartupItem(
            path=str(lnk),
            target=data["target"] or "",
            arguments=data["arguments"] or "",
            working_directory=data["cwd"] or "",
        )

    def set_startup_item(self, item: StartupItem) -> None:
        if isinstance(item, RegistryStartupItem):
            import winreg  # type: ignore[import-not-found]

            sub_key = item.path.split("\\", 1)[1] if item.path.upper().startswith("HKCU\\") else item.path
            try:
                with winreg.CreateKeyEx(winreg.HKEY_CURRENT_USER, sub_key, 0, winreg.KEY_SET_VALUE) as key:
                    winreg.SetValueEx(key, item.name, 0, winreg.REG_SZ, item.value)
            except OSError as exc:
                raise ControlSurfaceError(f"reg {item.key}", str(exc)) from exc
            return

        self._powershell(
            f"$l = (New-Object -ComObject WScript.Shell).CreateShortcut({_quote(item.path)}); "
            f"$l.TargetPath = {_quote(item.target)}; "
            f"$l.Arguments = {_quote(item.arguments)}; "
            f"$l.WorkingDirectory = {_quote(item.working_directory)}; "
            "$l.Save()"
        )

    # ── policy ───────────────────────────────────────────────────────────
    def get_execution_policy(self) -> str:
        return self._powershell("(Get-ExecutionPolicy -Scope LocalMachine).ToString()")

    def set_execution_policy(self, policy: str) -> None:
        self._powershell(f"Set-ExecutionPolicy -Scope LocalMachine -ExecutionPolicy {policy} -Force")

    # ── profile toggles ──────────────────────────────────────────────────
    def get_background_apps_disabled(self) -> bool:
        return self._get_user_dword(BACKGROUND_APPS_KEY, "GlobalUserDisabled", 0) == 1

    def get_visual_effects_suppressed(self) -> bool:
        return self._get_user_dword(VISUAL_EFFECTS_KEY, "VisualFXSetting", 0) == 2

    def get_notifications_suppressed(self) -> bool:
        return self._get_user_dword(PUSH_NOTIFICATIONS_KEY, "ToastEnabled", 1) == 0

    def set_background_apps_disabled(self, disabled: bool) -> None:
        self._set_user_dword(BACKGROUND_APPS_KEY, "GlobalUserDisabled", int(disabled))

    def _suppress_service(self, name: str, suppressed: bool) -> None:
        if suppressed:
            self.set_service_state(name, "Disabled", False)
        else:
            self.set_service_state(name, "Automatic", True)

    def set_indexing_suppressed(self, suppressed: bool) -> None:
        self._suppress_service(SEARCH_INDEXING_SERVICE, suppressed)

    def set_prefetch_suppressed(self, suppressed: bool) -> None:
        self._suppress_service(PREFETCH_SERVICE, suppressed)

    def set_diagnostics_suppressed(self, suppressed: bool) -> None:
        self._suppress_service(DIAGNOSTICS_SERVICE, suppressed)

    def set_visual_effects_suppressed(self, suppressed: bool) -> None:
        # 2 = adjust for best performance, 0 = let Windows choose
        self._set_user_dword(VISUAL_EFFECTS_KEY, "VisualFXSetting", 2 if suppressed else 0)

    def set_notifications_suppressed(self, suppressed: bool) -> None:
        self._set_user_dword(PUSH_NOTIFICATIONS_KEY, "ToastEnabled", 0 if suppressed else 1)

    # ── deferred invocation ──────────────────────────────────────────────
    def schedule_one_shot(self, name: str, delay_minutes: int, invocation: Sequence[str]) -> None:
        program, *arguments = invocation
        args_literal = _quote(subprocess.list2cmdline(arguments))
        self._powershell(
            f"$a = New-ScheduledTaskAction -Execute {_quote(program)} -Argument {args_literal}; "
            f"$t = New-ScheduledTaskTrigger -Once -At (Get-Date).AddMinutes({int(delay_minutes)}); "
            f"Register-ScheduledTask -TaskName {_quote(name)} -Action $a -Trigger $t "
            "-RunLevel Highest -Force | Out-Null"
        )

    def cancel_scheduled(self, name: str) -> None:
        # A missing task leaves $? false; exit status must still be 0
        task = _quote(name)
        self._powershell(
            f"$t = Get-ScheduledTask -TaskName {task} -ErrorAction SilentlyContinue; "
            f"if ($t) {{ Unregister-ScheduledTask -TaskName {task} -Confirm:$false -ErrorAction Stop }}; "
            "exit 0"
        )

