# Copyright 2025 Berkan Tali
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from setuptools import setup, find_packages

package_name = 'conduit_connector'

setup(
    name=package_name,
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.8',
    install_requires=[
        'setuptools',
        'numpy',
        'scipy',
        'pyyaml'
    ],
    extras_require={
        'test': ['pytest'],
    },
    zip_safe=True,
    maintainer='Berkan Tali',
    maintainer_email='berkantali23@outlook.com',
    description='Conduit pair classification and connection planning',
    license='Apache-2.0',
    entry_points={
        'console_scripts': [
            'connect_conduits = conduit_connector.connect_conduits:main',
        ],
    },
)
