import os

from setuptools import find_packages, setup

project_dir = os.path.abspath(os.path.dirname(__file__))

with open(os.path.join(project_dir, "version.txt")) as f:
    version = f.read().rstrip()

with open(os.path.join(project_dir, "requirements", "base.in")) as f:
    install_requires = [line.rstrip("\n") for line in f if line.strip() and not line.startswith("#")]

with open(os.path.join(project_dir, "requirements", "test.in")) as f:
    tests_require = [line.rstrip("\n") for line in f if line.strip() and not line.startswith("#")]

setup(
    name="rcodesign-action",
    version=version,
    description="Sign, notarize and staple Apple artifacts with rcodesign",
    author="Mozilla Release Engineering",
    author_email="release+python@mozilla.com",
    url="https://github.com/mozilla-releng/rcodesign-action",
    packages=find_packages("src"),
    package_dir={"": "src"},
    package_data={"rcodesign_action": ["data/*"]},
    include_package_data=True,
    zip_safe=False,
    entry_points={"console_scripts": ["rcodesign-action = rcodesign_action.script:main"]},
    license="MPL2",
    python_requires=">=3.11",
    install_requires=install_requires,
    extras_require={"test": tests_require},
)
