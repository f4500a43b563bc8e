#!/usr/bin/env python3
"""
Create a staff account for the kitchen console
"""

import argparse
import asyncio
import getpass

from kitchen_console.application.authenticate import RegisterStaffUseCase
from kitchen_console.database import get_session_factory
from kitchen_console.domain.exceptions import StaffExistsError
from kitchen_console.infrastructure.unit_of_work import UnitOfWork


async def seed_staff(username: str, password: str, display_name: str | None = None) -> None:
    register = RegisterStaffUseCase(UnitOfWork(get_session_factory()))
    try:
        staff = await register(username, password, display_name)
    except StaffExistsError:
        print(f"Staff account {username} already exists. Skipping...")
        return
    print(f"Created staff account: {staff.username} (ID: {staff.id})")


def main():
    parser = argparse.ArgumentParser(description="Create a kitchen console staff account")
    parser.add_argument("username")
    parser.add_argument("--display-name", default=None)
    parser.add_argument("--password", default=None, help="prompted for when omitted")
    args = parser.parse_args()

    password = args.password or getpass.getpass(f"Password for {args.username}: ")
    asyncio.run(seed_staff(args.username, password, args.display_name))


if __name__ == "__main__":
    main()
