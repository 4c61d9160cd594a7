#!/usr/bin/env python3
"""
Matter Bridge - terminal launcher
Drives a running bridge over its HTTP API
"""

import os
import sys
from typing import Any, Dict, List, Optional

import requests
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.align import Align
from rich.text import Text
from rich import box
from rich.prompt import Prompt, Confirm

console = Console()

DEFAULT_URL = "http://localhost:3000"


class BridgeClientError(Exception):
    """Error envelope returned by the bridge (or a transport failure)"""

    def __init__(self, message: str, code: str = "UnknownError", status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class BridgeClient:
    """Thin requests wrapper around the bridge HTTP API"""

    def __init__(self, base_url: str = DEFAULT_URL, timeout: float = 90):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = requests.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise BridgeClientError(f"Cannot reach bridge at {self.base_url}: {e}")

        try:
            data = response.json()
        except ValueError:
            raise BridgeClientError(f"Invalid response ({response.status_code})", status_code=response.status_code)

        if response.status_code >= 400 or data.get("status") == "error":
            raise BridgeClientError(
                data.get("message", "Request failed"),
                code=data.get("code", "UnknownError"),
                status_code=response.status_code,
            )
        return data

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/api/health")

    def scan(self) -> List[Dict[str, Any]]:
        return self._request("POST", "/api/discovery/scan")["devices"]

    def devices(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/device/list")["devices"]

    def pair(self, node_id: str, setup_code: str) -> Dict[str, Any]:
        data = self._request("POST", "/api/pairing/code", json={"nodeId": node_id, "setupCode": setup_code})
        return data["deviceInfo"]

    def commission(self, node_id: str, ssid: str, password: str) -> Dict[str, Any]:
        data = self._request(
            "POST", "/api/commissioning/wifi",
            json={"nodeId": node_id, "ssid": ssid, "password": password},
        )
        return data["deviceInfo"]

    def logs(self, date: Optional[str] = None) -> List[str]:
        params = {"date": date} if date else None
        return self._request("GET", "/api/logs", params=params)["logs"]


STATUS_STYLES = {
    "discovered": "yellow",
    "paired": "cyan",
    "commissioned": "green",
}


def device_table(devices: List[Dict[str, Any]], title: str = "Matter Devices") -> Table:
    """Render device records / registry entries as a table"""
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Node", style="bold", justify="right")
    table.add_column("Hostname", style="cyan")
    table.add_column("Addresses")
    table.add_column("Vendor/Product")
    table.add_column("Discriminator", justify="right")
    table.add_column("Network")
    table.add_column("Status")

    for device in devices:
        status = device.get("status", "")
        style = STATUS_STYLES.get(status, "dim")
        table.add_row(
            device.get("nodeId", ""),
            device.get("name", "-"),
            ", ".join(device.get("addresses", [])) or "-",
            f"{device.get('vendorId', '?')}/{device.get('productId', '?')}",
            device.get("discriminator", "-"),
            device.get("networkType", "unknown"),
            f"[{style}]{status}[/{style}]" if status else "[dim]-[/dim]",
        )
    return table


class MatterLauncher:
    """Interactive menu for the bridge"""

    def __init__(self, client: BridgeClient):
        self.client = client

    def create_header(self) -> Panel:
        try:
            health = self.client.health()
            tool = "[green]available[/green]" if health.get("chip_tool_available") else "[red]missing[/red]"
            status = f"[dim]Devices: {health.get('devices_count', 0)}  chip-tool: [/dim]{tool}"
        except BridgeClientError as e:
            status = f"[red]{e}[/red]"

        header_text = Text.from_markup(
            "[bold cyan]Matter Bridge[/bold cyan]\n"
            f"[dim]{self.client.base_url}[/dim]\n"
            f"{status}"
        )
        return Panel(Align.center(header_text), border_style="cyan", box=box.DOUBLE)

    def show_menu(self):
        console.clear()
        console.print(self.create_header())
        console.print("\n[bold]What would you like to do?[/bold]\n")
        console.print("  [1] Scan for commissionable devices")
        console.print("  [2] Show known devices")
        console.print("  [3] Pair a device")
        console.print("  [4] Commission a device onto Wi-Fi")
        console.print("  [5] Show today's logs")
        console.print("  [0] Quit")

    def _pause(self):
        input("\nPress Enter to continue...")

    def scan(self):
        with console.status("[cyan]Scanning...[/cyan]"):
            devices = self.client.scan()
        if devices:
            console.print(device_table(devices, title="Discovered Devices"))
        else:
            console.print("[yellow]No commissionable devices found[/yellow]")

    def show_devices(self):
        devices = self.client.devices()
        if devices:
            console.print(device_table(devices))
        else:
            console.print("[yellow]No devices known yet - run a scan first[/yellow]")

    def pair(self):
        node_id = Prompt.ask("Node ID", default="1")
        setup_code = Prompt.ask("Setup code")
        with console.status("[cyan]Pairing...[/cyan]"):
            info = self.client.pair(node_id, setup_code)
        console.print(f"[green]Device {info.get('nodeId')} paired[/green]")

    def commission(self):
        node_id = Prompt.ask("Node ID", default="1")
        ssid = Prompt.ask("Wi-Fi SSID", default=os.getenv("WIFI_SSID") or None)
        password = Prompt.ask("Wi-Fi password", password=True)
        with console.status("[cyan]Commissioning...[/cyan]"):
            info = self.client.commission(node_id, ssid, password)
        console.print(f"[green]Device {info.get('nodeId')} commissioned on '{ssid}'[/green]")

    def show_logs(self):
        for line in self.client.logs()[-50:]:
            console.print(line, markup=False, highlight=False)

    def run(self):
        actions = {
            "1": self.scan,
            "2": self.show_devices,
            "3": self.pair,
            "4": self.commission,
            "5": self.show_logs,
        }
        while True:
            self.show_menu()
            choice = Prompt.ask("\nYour choice", choices=["0", "1", "2", "3", "4", "5"])
            if choice == "0":
                if Confirm.ask("\n[yellow]Are you sure you want to quit?[/yellow]"):
                    break
                continue

            try:
                actions[choice]()
            except BridgeClientError as e:
                console.print(f"[bold red]{e.code}:[/bold red] {e}")
            self._pause()


def main():
    """Main entry point"""
    base_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("MATTER_BRIDGE_URL", DEFAULT_URL)
    try:
        MatterLauncher(BridgeClient(base_url)).run()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(0)


if __name__ == "__main__":
    main()
