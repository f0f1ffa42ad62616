#!/usr/bin/env python3
"""
Collector Verification Script
Run this against a running collector to verify it is set up correctly
"""

import os
import sys
from datetime import datetime, timezone

import requests
from colorama import init, Fore, Style

# Initialize colorama for colored output
init(autoreset=True)

BASE_URL = os.environ.get("VIBECHECK_COLLECTOR_URL", "http://localhost:8000")
API_URL = f"{BASE_URL}/api/v1"
ADMIN_TOKEN = os.environ.get("ADMIN_TOKEN")

def print_success(message):
    print(f"{Fore.GREEN}✅ {message}{Style.RESET_ALL}")

def print_error(message):
    print(f"{Fore.RED}❌ {message}{Style.RESET_ALL}")

def print_info(message):
    print(f"{Fore.BLUE}ℹ️  {message}{Style.RESET_ALL}")

def print_warning(message):
    print(f"{Fore.YELLOW}⚠️  {message}{Style.RESET_ALL}")

def print_header(title):
    print("\n" + "="*50)
    print(f"{Fore.CYAN}{title}{Style.RESET_ALL}")
    print("="*50)

def sample_event(action="SIGN_UP"):
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "userId": "verify-script",
        "userEmail": "verify@vibecheck.app",
        "userName": "Verify Script",
        "action": action,
        "details": "Collector verification",
        "metadata": {
            "platform": sys.platform,
            "userAgent": "verify_collector.py",
            "language": "en-US",
            "screenResolution": "0x0",
            "bodyType": "Athletic",
            "styleVibe": "Streetwear",
            "isPWA": False,
            "connectionType": "unknown"
        }
    }

def check_health():
    """Check the collector is running"""
    print_header("Checking Health...")

    try:
        response = requests.get(f"{BASE_URL}/health", timeout=5)

        if response.status_code == 200:
            data = response.json()
            print_success("Collector is running!")
            print_info(f"Status: {data.get('status')}")
            print_info(f"Database: {data.get('database')}")
            print_info(f"Version: {data.get('version')}")
            return True
        else:
            print_error(f"Health check failed with status {response.status_code}")
            return False

    except requests.exceptions.ConnectionError:
        print_error("Cannot connect to collector!")
        print_info("Make sure the collector is running on port 8000")
        print_info("Run: python -m vibecheck.main")
        return False
    except Exception as e:
        print_error(f"Error: {str(e)}")
        return False

def check_ingest_json():
    """Send an event the way the Python client does"""
    print_header("Checking JSON Ingest...")

    try:
        response = requests.post(f"{API_URL}/events", json=sample_event(), timeout=10)

        if response.status_code == 202:
            print_success(f"Event accepted (id {response.json().get('id')})")
            return True
        else:
            print_error(f"Ingest failed with status {response.status_code}")
            print_error(f"Response: {response.text}")
            return False

    except Exception as e:
        print_error(f"Error: {str(e)}")
        return False

def check_ingest_beacon():
    """Send an event the way navigator.sendBeacon does (text/plain body)"""
    print_header("Checking Beacon Ingest...")

    try:
        import json
        response = requests.post(
            f"{API_URL}/events",
            data=json.dumps(sample_event("SESSION_END")),
            headers={"Content-Type": "text/plain;charset=UTF-8"},
            timeout=10
        )

        if response.status_code == 202:
            print_success("Beacon payload accepted")
            return True
        else:
            print_error(f"Beacon ingest failed with status {response.status_code}")
            return False

    except Exception as e:
        print_error(f"Error: {str(e)}")
        return False

def check_unknown_action_rejected():
    """Undeclared actions must be refused"""
    print_header("Checking Unknown Action Rejection...")

    try:
        response = requests.post(f"{API_URL}/events", json=sample_event("EXIT"), timeout=10)

        if response.status_code == 422:
            print_success("Unknown action rejected")
            return True
        else:
            print_error(f"Expected 422, got {response.status_code}")
            return False

    except Exception as e:
        print_error(f"Error: {str(e)}")
        return False

def check_admin_viewer():
    """Read back events through the admin viewer"""
    print_header("Checking Admin Viewer...")

    if not ADMIN_TOKEN:
        print_warning("Skipping - ADMIN_TOKEN not set")
        return False

    headers = {"Authorization": f"Bearer {ADMIN_TOKEN}"}

    try:
        response = requests.get(f"{API_URL}/admin/events", headers=headers, params={"limit": 5}, timeout=5)
        if response.status_code != 200:
            print_error(f"Event list failed with status {response.status_code}")
            return False
        print_success(f"Event list returned {len(response.json())} events")

        response = requests.get(f"{API_URL}/admin/events/stats", headers=headers, timeout=5)
        if response.status_code != 200:
            print_error(f"Stats failed with status {response.status_code}")
            return False
        today = response.json()[-1]
        print_success("Daily stats available")
        print_info(f"Today ({today.get('date')}): {today.get('total')} events")

        response = requests.get(f"{API_URL}/admin/events/export", headers=headers, timeout=30)
        if response.status_code != 200:
            print_error(f"Export failed with status {response.status_code}")
            return False
        print_success("Export available")
        print_info(response.headers.get("Content-Disposition", ""))
        return True

    except Exception as e:
        print_error(f"Error: {str(e)}")
        return False

def run_all_checks():
    """Run all checks"""
    print(f"\n{Fore.MAGENTA}{'='*50}")
    print(f"{Fore.MAGENTA}🧪 COLLECTOR VERIFICATION SCRIPT")
    print(f"{Fore.MAGENTA}{'='*50}{Style.RESET_ALL}\n")

    print_info(f"Checking collector at: {BASE_URL}")

    results = {}

    results['health'] = check_health()

    if not results['health']:
        print_error("\n❌ Collector is not running! Please start it first.")
        print_info("Run: python -m vibecheck.main")
        sys.exit(1)

    results['ingest_json'] = check_ingest_json()
    results['ingest_beacon'] = check_ingest_beacon()
    results['unknown_action'] = check_unknown_action_rejected()
    results['admin_viewer'] = check_admin_viewer()

    # Print summary
    print("\n" + "="*50)
    print(f"{Fore.MAGENTA}📊 SUMMARY{Style.RESET_ALL}")
    print("="*50 + "\n")

    total = len(results)
    passed = sum(1 for v in results.values() if v)

    for check, result in results.items():
        status = "✅ PASS" if result else "❌ FAIL"
        color = Fore.GREEN if result else Fore.RED
        print(f"{color}{status}{Style.RESET_ALL} - {check.replace('_', ' ').title()}")

    print("\n" + "="*50)
    print(f"Total: {passed}/{total} checks passed")
    print("="*50 + "\n")

    if passed == total:
        print(f"{Fore.GREEN}🎉 All checks passed! The collector is ready.{Style.RESET_ALL}\n")
        print(f"{Fore.CYAN}Next step:{Style.RESET_ALL} set TRACKING_ENDPOINT_URL={API_URL}/events in the app")
        return 0
    else:
        print(f"{Fore.RED}❌ Some checks failed. Please fix the issues above.{Style.RESET_ALL}\n")
        return 1

if __name__ == "__main__":
    try:
        sys.exit(run_all_checks())
    except KeyboardInterrupt:
        print(f"\n{Fore.YELLOW}Verification interrupted by user{Style.RESET_ALL}")
        sys.exit(1)
