#!/usr/bin/env python3
"""
Startup Script for the OAuth Consent System

Launches the consent application and the demo callback application with
process management, health checks, and graceful shutdown handling.
"""

import subprocess
import sys
import time
import signal
import socket
import httpx
from typing import List, Dict
from datetime import datetime

from oauth_consent.shared.config import CONSENT_CONFIG
from oauth_consent.shared.logging_utils import OAuthLogger


class ServerManager:
    """Manages the consent and callback servers with health checks and graceful shutdown"""

    def __init__(self):
        self.logger = OAuthLogger("SYSTEM")
        self.processes: List[subprocess.Popen] = []
        self.servers = [
            {
                "name": "Callback Application",
                "module": "oauth_consent.callback_app.main:app",
                "port": CONSENT_CONFIG["callback_port"],
                "health_url": f"http://localhost:{CONSENT_CONFIG['callback_port']}/health",
                "process": None
            },
            {
                "name": "Consent Application",
                "module": "oauth_consent.consent_app.main:app",
                "port": CONSENT_CONFIG["port"],
                "health_url": f"http://localhost:{CONSENT_CONFIG['port']}/health",
                "process": None
            }
        ]
        self.shutdown_requested = False

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals gracefully"""
        self.logger.log_oauth_message(
            "SYSTEM", "SYSTEM",
            "Shutdown Signal Received",
            {
                "signal": signum,
                "timestamp": datetime.now().isoformat(),
                "active_servers": len([s for s in self.servers if s["process"]])
            }
        )
        self.shutdown_requested = True
        self.stop_all_servers()
        sys.exit(0)

    def check_port_available(self, port: int) -> bool:
        """Check if a port is available for use"""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            return sock.connect_ex(('localhost', port)) != 0

    def wait_for_health_check(self, server: Dict, timeout: int = 30) -> bool:
        """Wait for server to respond to health checks"""
        start_time = time.time()

        while time.time() - start_time < timeout:
            try:
                with httpx.Client() as client:
                    response = client.get(server["health_url"], timeout=2)
                if response.status_code == 200:
                    self.logger.log_oauth_message(
                        "SYSTEM", server["name"].upper().replace(" ", "-"),
                        "Health Check Passed",
                        {
                            "url": server["health_url"],
                            "response_time": f"{time.time() - start_time:.2f}s"
                        }
                    )
                    return True
            except httpx.HTTPError:
                pass

            time.sleep(1)

        return False

    def start_server(self, server: Dict) -> bool:
        """Start a single server with uvicorn"""
        if not self.check_port_available(server["port"]):
            self.logger.log_error(
                "port_in_use",
                f"Port {server['port']} is already in use",
                {"server": server["name"]}
            )
            return False

        self.logger.log_oauth_message(
            "SYSTEM", server["name"].upper().replace(" ", "-"),
            "Starting Server",
            {
                "module": server["module"],
                "port": server["port"],
                "health_url": server["health_url"]
            }
        )

        try:
            process = subprocess.Popen([
                sys.executable, "-m", "uvicorn",
                server["module"],
                "--host", "0.0.0.0",
                "--port", str(server["port"]),
                "--log-level", "info"
            ])
        except OSError as e:
            self.logger.log_error("server_start_failed", str(e), {"server": server["name"]})
            return False

        server["process"] = process
        self.processes.append(process)

        if self.wait_for_health_check(server):
            return True

        self.logger.log_error(
            "health_check_failed",
            f"{server['name']} did not become healthy",
            {"port": server["port"], "timeout": "30s"}
        )
        process.terminate()
        return False

    def start_all_servers(self) -> bool:
        """Start the callback application first, then the consent application"""
        for server in self.servers:
            if self.shutdown_requested:
                return False

            print(f"Starting {server['name']} on port {server['port']}...")
            if not self.start_server(server):
                print(f"Failed to start {server['name']}")
                self.stop_all_servers()
                return False

        print()
        print("All servers started:")
        for server in self.servers:
            print(f"  {server['name']}: http://localhost:{server['port']}")
        print()
        print(f"Authorization API: {CONSENT_CONFIG['api_base_url']}")
        print("Press Ctrl+C to stop all servers")
        return True

    def stop_all_servers(self):
        """Stop all running servers gracefully"""
        if not self.processes:
            return

        for process in self.processes:
            if process.poll() is None:
                process.terminate()
                try:
                    process.wait(timeout=5)
                except subprocess.TimeoutExpired:
                    process.kill()
                    process.wait()

        self.processes.clear()
        for server in self.servers:
            server["process"] = None

        self.logger.log_oauth_message(
            "SYSTEM", "SYSTEM",
            "Shutdown Complete",
            {
                "timestamp": datetime.now().isoformat(),
                "status": "clean_shutdown"
            }
        )

    def run(self):
        """Main run method"""
        try:
            if not self.start_all_servers():
                sys.exit(1)

            while not self.shutdown_requested:
                time.sleep(1)
        except KeyboardInterrupt:
            pass  # Handled by signal handler
        finally:
            self.stop_all_servers()


def main():
    """Main entry point"""
    ServerManager().run()


if __name__ == "__main__":
    main()
