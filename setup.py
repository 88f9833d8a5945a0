from setuptools import setup

_ = setup(
    name="adservice",
    version="1.0.0",
    license="MIT",
    install_requires=[
        "impacket~=0.12.0",
        "ldap3~=2.9.1",
        "dnspython~=2.7.0",
        "argcomplete",
    ],
    extras_require={
        "test": ["pytest"],
    },
    packages=[
        "adservice",
        "adservice.commands",
        "adservice.commands.parsers",
        "adservice.lib",
        "adservice.methods",
    ],
    entry_points={
        "console_scripts": ["adservice=adservice.entry:main"],
    },
    description="Delegated Active Directory object operations gated by effective rights",
)
