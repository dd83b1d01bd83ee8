PACKAGE_VERSION = '0.4.2'                          # version of the package
PACKAGE_DATE = '2026-10-18T12:00:00.000000+13:00'  # official timestamp for the package
