#!/usr/bin/env python3
"""
Shelly HTTP <-> MQTT bridge (shelly2mqtt).
"""
import sys
import os

# Ensure the current directory is in sys.path so we can import the package
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from shelly_bridge.main import main

if __name__ == "__main__":
    main()
