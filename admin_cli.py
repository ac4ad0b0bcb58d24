"""
WasteCollect Server - Admin CLI
Command-line tool for platform administrators

Usage:
    python admin_cli.py login
    python admin_cli.py stats [DAY|WEEK|MONTH|YEAR]
    python admin_cli.py municipalities list
    python admin_cli.py municipalities create "Name" [province]
    python admin_cli.py users list [role]
    python admin_cli.py collectors toggle <user_id>
    python admin_cli.py notify <ALL|HOUSEHOLD|COLLECTOR|MUNICIPAL_MANAGER|ADMIN> "Subject" "Message"
    python admin_cli.py underserved
"""
import os
import sys
import httpx
from pathlib import Path

BASE_URL = os.getenv("WASTECOLLECT_URL", "http://localhost:8080")
TOKEN_FILE = Path(".admin_token")


def save_token(token: str):
    TOKEN_FILE.write_text(token)


def load_token() -> str:
    if TOKEN_FILE.exists():
        return TOKEN_FILE.read_text().strip()
    return None


def get_headers():
    token = load_token()
    if not token:
        print("Error: log in first with 'python admin_cli.py login'")
        sys.exit(1)
    return {"Authorization": f"Bearer {token}"}


def error_detail(response: httpx.Response) -> str:
    try:
        return response.json().get("detail", response.text)
    except ValueError:
        return response.text


def cmd_login():
    email = input("Email [admin@wastecollect.local]: ").strip() or "admin@wastecollect.local"
    password = input("Password: ").strip()

    try:
        response = httpx.post(
            f"{BASE_URL}/api/auth/login",
            json={"email": email, "password": password}
        )
    except httpx.HTTPError as e:
        print(f"✗ Connection error: {e}")
        return

    if response.status_code == 200:
        data = response.json()
        save_token(data["access_token"])
        print(f"\n✓ Logged in")
        print(f"  User: {data['user']['email']} ({data['user']['role']})")
    else:
        print(f"✗ Error: {error_detail(response)}")


def cmd_stats(period: str = "WEEK"):
    try:
        response = httpx.get(
            f"{BASE_URL}/api/admin/statistics",
            params={"period": period},
            headers=get_headers()
        )
    except httpx.HTTPError as e:
        print(f"✗ Error: {e}")
        return

    if response.status_code != 200:
        print(f"✗ Error: {error_detail(response)}")
        return

    stats = response.json()
    print(f"\n{'='*44}")
    print(f"  WASTECOLLECT STATISTICS ({stats['period']})")
    print(f"{'='*44}")
    print(f"  Users: {stats['total_users']}")
    print(f"    - Households: {stats['total_households']}")
    print(f"    - Collectors: {stats['total_collectors']}")
    print(f"  Municipalities: {stats['total_municipalities']}")
    print(f"  Requests: {stats['total_requests']}")
    print(f"    - Completed: {stats['completed_requests']}")
    print(f"    - Pending: {stats['pending_requests']}")
    print(f"  Waste collected: {stats['total_waste_collected']:.2f} kg")
    print(f"  Revenue: {stats['total_revenue']:.2f}")
    print(f"  Open disputes: {stats['open_disputes']}")
    print(f"{'='*44}")


def cmd_municipalities_list():
    try:
        response = httpx.get(f"{BASE_URL}/api/municipalities", headers=get_headers())
    except httpx.HTTPError as e:
        print(f"✗ Error: {e}")
        return

    if response.status_code != 200:
        print(f"✗ Error: {error_detail(response)}")
        return

    municipalities = response.json()
    print(f"\n{'='*80}")
    print(f"{'ID':<36} | {'Name':<20} | {'Manager':<18}")
    print(f"{'='*80}")
    for m in municipalities:
        manager = (m.get("manager_name") or "-")[:18]
        print(f"{m['id']:<36} | {m['name'][:20]:<20} | {manager:<18}")
    print(f"\nTotal: {len(municipalities)} municipalities")


def cmd_municipalities_create(name: str, province: str = None):
    try:
        response = httpx.post(
            f"{BASE_URL}/api/municipalities",
            json={"name": name, "province": province},
            headers=get_headers()
        )
    except httpx.HTTPError as e:
        print(f"✗ Error: {e}")
        return

    if response.status_code == 201:
        municipality = response.json()
        print(f"\n✓ Municipality created")
        print(f"  ID: {municipality['id']}")
        print(f"  Name: {municipality['name']}")
    else:
        print(f"✗ Error: {error_detail(response)}")


def cmd_users_list(role: str = None):
    params = {"size": 200}
    if role:
        params["role"] = role.upper()
    try:
        response = httpx.get(f"{BASE_URL}/api/admin/users", params=params, headers=get_headers())
    except httpx.HTTPError as e:
        print(f"✗ Error: {e}")
        return

    if response.status_code != 200:
        print(f"✗ Error: {error_detail(response)}")
        return

    page = response.json()
    print(f"\n{'='*90}")
    print(f"{'ID':<36} | {'Name':<20} | {'Role':<17} | {'Enabled':<7}")
    print(f"{'='*90}")
    for u in page["items"]:
        print(f"{u['id']:<36} | {u['full_name'][:20]:<20} | {u['role']:<17} | {str(u['enabled']):<7}")
    print(f"\nTotal: {page['total']} users")


def cmd_collectors_toggle(user_id: str):
    try:
        response = httpx.patch(
            f"{BASE_URL}/api/admin/collectors/{user_id}/toggle-status",
            headers=get_headers()
        )
    except httpx.HTTPError as e:
        print(f"✗ Error: {e}")
        return

    if response.status_code == 200:
        user = response.json()
        print(f"✓ {user['full_name']} is now {user['profile']['collector_status']}")
    else:
        print(f"✗ Error: {error_detail(response)}")


def cmd_notify(target: str, subject: str, message: str):
    target = target.upper()
    body = {"subject": subject, "message": message}
    if target == "ALL":
        body["audience"] = "ALL"
    else:
        body["audience"] = "ROLE"
        body["role"] = target

    try:
        response = httpx.post(
            f"{BASE_URL}/api/admin/notifications/send",
            json=body,
            headers=get_headers()
        )
    except httpx.HTTPError as e:
        print(f"✗ Error: {e}")
        return

    if response.status_code == 200:
        result = response.json()
        print(f"✓ Delivered: {result['delivered']}  Failed: {result['failed']}")
        for entry in result["entries"]:
            if not entry["delivered"]:
                print(f"  - {entry['user_id']}: {entry['error']}")
    else:
        print(f"✗ Error: {error_detail(response)}")


def cmd_underserved():
    try:
        response = httpx.get(f"{BASE_URL}/api/admin/underserved-count", headers=get_headers())
    except httpx.HTTPError as e:
        print(f"✗ Error: {e}")
        return

    if response.status_code == 200:
        print(f"Underserved households: {response.json()['underserved_households']}")
    else:
        print(f"✗ Error: {error_detail(response)}")


def print_help():
    print("""
WasteCollect Server - Admin CLI
===============================

Commands:

  python admin_cli.py login                                  - Log in
  python admin_cli.py stats [DAY|WEEK|MONTH|YEAR]            - Platform statistics

  python admin_cli.py municipalities list                    - List municipalities
  python admin_cli.py municipalities create "Name" [province]
                                                             - Create a municipality

  python admin_cli.py users list [role]                      - List users
  python admin_cli.py collectors toggle <user_id>            - Flip ACTIVE/INACTIVE

  python admin_cli.py notify <ALL|role> "Subject" "Message"  - Bulk notification
  python admin_cli.py underserved                            - Underserved households

Set WASTECOLLECT_URL to target another server (default http://localhost:8080).
""")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print_help()
        sys.exit(0)

    cmd = sys.argv[1].lower()

    if cmd == "login":
        cmd_login()
    elif cmd == "stats":
        cmd_stats(sys.argv[2] if len(sys.argv) > 2 else "WEEK")
    elif cmd == "municipalities":
        if len(sys.argv) < 3:
            print("Usage: municipalities [list|create]")
        elif sys.argv[2] == "list":
            cmd_municipalities_list()
        elif sys.argv[2] == "create" and len(sys.argv) >= 4:
            cmd_municipalities_create(sys.argv[3], sys.argv[4] if len(sys.argv) > 4 else None)
        else:
            print("Usage: municipalities create 'Name' [province]")
    elif cmd == "users":
        if len(sys.argv) >= 3 and sys.argv[2] == "list":
            cmd_users_list(sys.argv[3] if len(sys.argv) > 3 else None)
        else:
            print("Usage: users list [role]")
    elif cmd == "collectors":
        if len(sys.argv) >= 4 and sys.argv[2] == "toggle":
            cmd_collectors_toggle(sys.argv[3])
        else:
            print("Usage: collectors toggle <user_id>")
    elif cmd == "notify":
        if len(sys.argv) >= 5:
            cmd_notify(sys.argv[2], sys.argv[3], sys.argv[4])
        else:
            print("Usage: notify <ALL|role> 'Subject' 'Message'")
    elif cmd == "underserved":
        cmd_underserved()
    elif cmd == "help":
        print_help()
    else:
        print(f"Unknown command: {cmd}")
        print_help()
