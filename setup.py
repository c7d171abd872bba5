"""Setup script for CalendarBot Recur, the lazy recurrence expansion engine."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

# Read requirements, separating test tooling into the dev extra
requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
dev_requirements = []

if requirements_file.exists():
    content = requirements_file.read_text().strip()
    lines = content.split("\n")

    for line in lines:
        line = line.strip()
        # Skip empty lines and comments
        if not line or line.startswith("#"):
            continue

        if "pytest" in line or "development" in line.lower() or "testing" in line.lower():
            dev_requirements.append(line)
        else:
            requirements.append(line)

setup(
    name="calendarbot-recur",
    version="0.1.0",
    description="Lazy RFC 5545 recurrence expansion (RRULE, RDATE, EXRULE, EXDATE) for CalendarBot",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="CalendarBot Team",
    author_email="support@calendarbot.local",
    url="https://github.com/calendarbot/calendarbot",
    # Package configuration
    packages=find_packages(exclude=["tests*", "docs*"]),
    include_package_data=True,
    # Dependencies
    install_requires=requirements,
    extras_require={
        "dev": dev_requirements
        + [
            "mypy>=1.0.0",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business :: Scheduling",
    ],
    keywords="calendar ics icalendar rrule recurrence rfc5545",
    entry_points={
        "console_scripts": [
            "calendarbot-recur=calendarbot_recur.__main__:main",
        ],
    },
    package_data={
        "calendarbot_recur": ["py.typed"],
    },
    zip_safe=False,
)
