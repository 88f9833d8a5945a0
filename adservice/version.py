# Initialize version as unknown
version = "?"

try:
    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as get_version

    version = get_version("adservice")
except PackageNotFoundError:
    print(
        "Cannot determine adservice version. "
        'If running from source you should at least run "python setup.py egg_info"'
    )

BANNER = "adservice v{} - delegated Active Directory operations\n".format(version)
