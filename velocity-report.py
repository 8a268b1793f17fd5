#!/usr/bin/env python3
"""
Velocity Report
Posts a daily GitLab/GitHub team activity summary to a chat webhook.
"""

from velocity_report.cli import main


if __name__ == "__main__":
    main()
