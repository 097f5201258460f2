"""Interactive CLI simulator — walk through the login flow without a browser."""

import asyncio

from otp_login.auth.errors import AuthError
from otp_login.auth.login_flow import LoginFlow
from otp_login.auth.session_state import Phase, SessionState
from otp_login.config import settings
from otp_login.otp.registry import InMemoryOTPRegistry
from otp_login.otp.sweeper import OTPSweeper
from otp_login.services.notifier import BaseNotifier

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"


class ConsoleNotifier(BaseNotifier):
    """Prints codes to the terminal instead of emailing them."""

    async def notify(self, address: str, code: str) -> bool:
        print(f"{YELLOW}📧 [to {address}] Your OTP for login is: {BOLD}{code}{RESET}")
        return True


async def main() -> None:
    print(f"\n{BOLD}{'=' * 52}")
    print(f"  🔐  {settings.app_name} — Login Simulator")
    print(f"{'=' * 52}{RESET}\n")
    print(f"{DIM}Type 'quit' to exit, 'logout' to sign out{RESET}")
    print(f"{DIM}Codes expire after {settings.otp_ttl_seconds} seconds{RESET}\n")

    # ── Set up the flow ──────────────────────────────────
    registry = InMemoryOTPRegistry(ttl_seconds=settings.otp_ttl_seconds)
    flow = LoginFlow(
        registry,
        ConsoleNotifier(),
        notify_address=settings.test_email or "you@example.com",
    )
    sweeper = OTPSweeper(registry, interval_seconds=settings.sweep_interval_seconds)
    sweeper.start()
    state = SessionState()

    while True:
        try:
            if state.phase is Phase.PENDING_SECOND_FACTOR:
                user_input = input(f"{BLUE}{BOLD}OTP:{RESET} ").strip()
            elif state.phase is Phase.AUTHENTICATED:
                user_input = input(f"{BLUE}{BOLD}{state.authenticated_username}>{RESET} ").strip()
            else:
                user_input = input(f"{BLUE}{BOLD}Username:{RESET} ").strip()
        except (KeyboardInterrupt, EOFError):
            print(f"\n{DIM}Goodbye!{RESET}")
            break

        if user_input.lower() == "quit":
            print(f"{DIM}Goodbye!{RESET}")
            break

        if user_input.lower() == "logout":
            flow.logout(state)
            print(f"{GREEN}👋 You have been logged out.{RESET}\n")
            continue

        try:
            if state.phase is Phase.PENDING_SECOND_FACTOR:
                result = await flow.submit_code(state, user_input)
            elif state.phase is Phase.AUTHENTICATED:
                print(f"{DIM}Signed in at {state.login_timestamp:%H:%M:%S}{RESET}\n")
                continue
            else:
                password = input(f"{BLUE}{BOLD}Password:{RESET} ").strip()
                result = await flow.submit_credentials(state, user_input, password)
        except AuthError as exc:
            print(f"{RED}❌ {exc.message}{RESET}\n")
            continue

        print(f"{GREEN}{BOLD}✅{RESET} {result.message}\n")

    await sweeper.stop()


if __name__ == "__main__":
    asyncio.run(main())
