#!/usr/bin/env python
# coding: utf-8

# Copyright 2015 by Leipzig University Library, http://ub.uni-leipzig.de
#                   The Finc Authors, http://finc.info
#                   Martin Czygan, <martin.czygan@uni-leipzig.de>
#
# This file is part of some open source application.
#
# Some open source application is free software: you can redistribute
# it and/or modify it under the terms of the GNU General Public
# License as published by the Free Software Foundation, either
# version 3 of the License, or (at your option) any later version.
#
# Some open source application is distributed in the hope that it will
# be useful, but WITHOUT ANY WARRANTY; without even the implied warranty
# of MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with Foobar.  If not, see <http://www.gnu.org/licenses/>.
#
# @license GPL-3.0+ <http://spdx.org/licenses/GPL-3.0+>

"""
span converts article metadata into an intermediate schema and attaches
ISILs based on holdings files and filter configurations. For more information
on the project, please refer to https://finc.info.
"""

from setuptools import setup

from span import __version__

install_requires = [
    'luigi>=3.2.1',
    'pydantic>=2',
    'python-dateutil>=2.8.2',
    'ujson>=5',
    'xmltodict>=0.12.0',
]

setup(name='span',
      version=__version__,
      description='Intermediate schema conversions and ISIL attachment for https://finc.info',
      url='https://finc.info',
      author='The Finc Authors',
      author_email='team@finc.info',
      packages=[
          'span',
          'span.sources',
      ],
      package_dir={'span': 'span'},
      entry_points={
        'console_scripts': [
            'span-convert=span.main:main',
            'span-tag=span.main:tag',
        ],
      },
      install_requires=install_requires,
      extras_require={
          'tests': ['pytest'],
      },
      zip_safe=False,
      classifiers=[
          'Development Status :: 4 - Beta',
          'Environment :: Console',
          'License :: OSI Approved :: GNU General Public License v3 (GPLv3)',
          'Operating System :: POSIX',
          'Programming Language :: Python :: 3',
          'Programming Language :: Python',
          'Topic :: Text Processing',
      ])
