import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="gemclient",
    version="0.1.0",
    author="Maarten Jacobs",
    author_email="maarten.j.jacobs@gmail.com",
    description="Minimal Gemini protocol client",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(include=["gemclient", "gemclient.*"]),
    extras_require={"test": ["pytest>=7", "hypothesis"]},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Utilities",
        "Topic :: Internet",
    ],
    python_requires="~=3.8",  # Python >= 3.8 but < 4
    keywords=["gemini", "gemclient"],
)
