from setuptools import setup

with open("tradfri/version.py") as f:
    exec(f.read())

setup(
    name="python-tradfri-coap",
    version=__version__,  # type: ignore # noqa: F821
    description="Python API for the CoAP interface of IKEA TRÅDFRI gateways",
    url="https://github.com/python-tradfri-coap/python-tradfri-coap",
    author="",
    author_email="",
    license="GPLv3",
    packages=["tradfri", "tradfri.transports"],
    install_requires=[
        "aiocoap[tinydtls]>=0.4.7",
        "asyncclick>=8.1.7",
        "mashumaro>=3.11",
        "yarl>=1.9",
    ],
    extras_require={
        "speedups": ["orjson>=3.9"],
        "shell": ["rich>=13"],
        "test": [
            "pytest>=8",
            "pytest-asyncio>=0.23",
            "pytest-mock>=3.12",
        ],
    },
    python_requires=">=3.11",
    entry_points={"console_scripts": ["tradfri=tradfri.cli:cli"]},
    zip_safe=False,
)
