[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gmsm"
version = "0.1.0"
description = "SM4 block cipher with ECB, CBC, CFB, OFB and GCM modes, PKCS#7 stream padding and PEM key files"
requires-python = ">=3.10"
keywords = ["sm4", "cipher", "gcm", "pkcs7", "pem", "cryptography"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["gmsm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
