import setuptools

with open('README.md') as infile:
    long_description = infile.read()

with open('VERSION') as infile:
    version = infile.read().strip()

setuptools.setup(
    name='ballotbox',
    version=version,
    description='Ranked ballot elections with incremental result computation',
    long_description=long_description,
    long_description_content_type='text/markdown; charset=UTF-8',
    author='Jan Šimbera',
    author_email='simbera.jan@gmail.com',
    python_requires='>=3.8.0',
    packages=setuptools.find_packages(exclude=('tests', )),
    install_requires=['duckdb'],
    extras_require={'test': ['pytest']},
    include_package_data=True,
    license='MIT',
    keywords='voting election ballot condorcet schulze apportionment python',
    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
    ],
    zip_safe=True
)
