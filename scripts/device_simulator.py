#!/usr/bin/env python3
"""
Field device simulator: resolves its ambulance by MAC, then posts vitals and
location on a fixed interval, the way the ambulance's board does.
"""

import argparse
import random
import time

import requests


def run(base_url: str, mac: str, interval: float, count: int) -> None:
    resp = requests.get(f"{base_url}/ambulances/resolve", params={"mac": mac}, timeout=10)
    data = resp.json()
    if not data.get("success"):
        print("Device not registered:", data.get("message"), data.get("hint", ""))
        return
    print("Simulating device for ambulance", data["ambulance_id"])

    lat, lon = 12.9716, 77.5946
    sent = 0
    while count <= 0 or sent < count:
        lat += random.uniform(-0.0005, 0.0005)
        lon += random.uniform(-0.0005, 0.0005)
        report = {
            "mac": mac,
            "temperature": round(random.uniform(36.0, 39.0), 1),
            "heartRate": random.randint(55, 120),
            "oxygenLevel": random.randint(90, 100),
            "speed": round(random.uniform(20, 80), 1),
            "latitude": lat,
            "longitude": lon,
        }
        out = requests.post(f"{base_url}/telemetry", json=report, timeout=10).json()
        print("sent", report, "->", out.get("message"))
        sent += 1
        time.sleep(interval)


if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--base-url", default="http://localhost:8000")
    p.add_argument("--mac", required=True)
    p.add_argument("--interval", type=float, default=10.0)
    p.add_argument("--count", type=int, default=0, help="reports to send, 0 for no limit")
    args = p.parse_args()
    run(args.base_url, args.mac, args.interval, args.count)
